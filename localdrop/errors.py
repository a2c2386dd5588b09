"""Error kinds raised by the LocalDrop core.

Every network-facing error carries the HTTP status and the message that
ends up in the ``{"success": false, "error": ...}`` envelope.
"""


class LocalDropError(Exception):
    """Base class for all LocalDrop errors."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code


class BindError(LocalDropError):
    """The listener could not bind its port."""

    message = "Port unavailable"


class InvalidUpload(LocalDropError):
    status_code = 400
    message = "Invalid upload"


class NotFound(LocalDropError):
    status_code = 404
    message = "File not found"


class StorageIOError(LocalDropError):
    """Reading or writing device storage failed.

    Reads surface as 404, writes as 500.
    """

    @classmethod
    def on_read(cls, message: str = "File not found") -> "StorageIOError":
        return cls(message, status_code=404)

    @classmethod
    def on_write(cls, message: str = "Failed to store file") -> "StorageIOError":
        return cls(message, status_code=500)


class RequestTimeout(LocalDropError):
    status_code = 408
    message = "Request timeout"


class InternalError(LocalDropError):
    pass
