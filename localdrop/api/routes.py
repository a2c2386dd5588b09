"""REST API routes for LocalDrop."""

import asyncio
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import ValidationError

from localdrop.api.webpage import render_page
from localdrop.context import SessionContext
from localdrop.errors import InvalidUpload, RequestTimeout
from localdrop.transfer import codec
from localdrop.transfer.models import UploadBody
from localdrop.transfer.multipart import parse_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def get_context(request: Request) -> SessionContext:
    return request.app.state.context


def content_disposition(filename: str) -> str:
    """``attachment; filename="..."``, with an RFC 5987 form for non-ASCII names."""
    fallback = "".join(
        ch if ch.isascii() and ch.isprintable() and ch not in '"\\' else "_"
        for ch in filename
    )
    value = f'attachment; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


async def read_body(request: Request, timeout: float) -> bytes:
    try:
        return await asyncio.wait_for(request.body(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Timed out reading body from {request.client}")
        raise RequestTimeout() from None


# --- Web interface ---

@router.get("/", response_class=HTMLResponse)
async def index(ctx: SessionContext = Depends(get_context)):
    address = ctx.address
    return HTMLResponse(render_page(address.ip, address.port))


# --- Status ---

@router.get("/api/status")
async def status(ctx: SessionContext = Depends(get_context)):
    address = ctx.address
    return {
        "success": True,
        "status": "running",
        "port": address.port,
        "ip": address.ip,
    }


# --- Files ---

@router.get("/api/files")
async def list_files(ctx: SessionContext = Depends(get_context)):
    """Return the session's files in the order they were added."""
    return {
        "success": True,
        "files": [record.summary() for record in ctx.manager.list()],
    }


@router.get("/api/files/{file_id:path}")
async def download_file(
    file_id: str, request: Request, ctx: SessionContext = Depends(get_context)
):
    """Stream a file, or wrap it in a data URI for clients that ask for JSON."""
    record = ctx.manager.get(file_id)

    if "application/json" in request.headers.get("accept", ""):
        data = await ctx.storage.read_bytes(record.storage_ref)
        return {
            "success": True,
            "filename": record.name,
            "dataUri": codec.to_data_uri(record.mime_type, data),
        }

    size = await ctx.storage.size(record.storage_ref)
    return StreamingResponse(
        ctx.storage.iter_chunks(record.storage_ref),
        media_type=record.mime_type,
        headers={
            "Content-Disposition": content_disposition(record.name),
            "Content-Length": str(size),
        },
    )


@router.delete("/api/files/{file_id:path}")
async def delete_file(file_id: str, ctx: SessionContext = Depends(get_context)):
    ctx.manager.remove(file_id)
    return {"success": True}


# --- Upload ---

@router.post("/api/upload")
async def upload_file(request: Request, ctx: SessionContext = Depends(get_context)):
    """Accept a JSON ``{filename, mimeType, data}`` envelope or a multipart form."""
    body = await read_body(request, ctx.read_timeout)
    if not body:
        raise InvalidUpload("No data received")

    content_type = request.headers.get("content-type", "")
    if content_type.lower().startswith("application/json"):
        try:
            payload = UploadBody.model_validate_json(body)
        except ValidationError as e:
            raise InvalidUpload("Invalid JSON body") from e
        if not payload.data:
            raise InvalidUpload("No file data provided")
        record = await ctx.manager.receive_upload(
            payload.filename, payload.mime_type, payload.data
        )
    else:
        field = parse_upload(body, content_type)
        record = await ctx.manager.receive_upload(
            field.filename, field.mime_type, codec.encode(field.raw_bytes)
        )

    return {"success": True, "file": record.model_dump(by_alias=True, mode="json")}
