import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error reported to the client as ``{"error": ..., "details": ...}``."""

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None, **extra: Any):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details
        self.extra = extra

    def payload(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s (%s)", request.method, request.url.path, exc.status_code, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


def install(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
