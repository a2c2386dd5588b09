"""
Dispatch boundary: CORS headers and error envelopes.

Every response leaving the app, errors included, carries the same CORS
headers, and nothing a handler raises gets past this layer.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from localdrop.errors import InternalError, LocalDropError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message},
        status_code=status_code,
        headers=CORS_HEADERS,
    )


async def _localdrop_error(request: Request, exc: LocalDropError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths and unsupported methods are both plain "Not found"
    if exc.status_code in (404, 405):
        return error_response(404, "Not found")
    return error_response(exc.status_code, str(exc.detail))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Invalid request")


async def dispatch_boundary(request: Request, call_next) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error serving {request.method} {request.url.path}")
        response = error_response(500, InternalError.message)

    response.headers.update(CORS_HEADERS)
    return response


def install(app: FastAPI) -> None:
    """Attach the CORS/error layer to ``app``."""
    app.add_exception_handler(LocalDropError, _localdrop_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.middleware("http")(dispatch_boundary)
