"""
Error taxonomy and the handlers that render every failure in the
``{"status": "error", "message": ...}`` envelope.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error with consistent structure"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(APIError):
    def __init__(self, detail: str = "Validation failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(APIError):
    def __init__(self, detail: str = "Invalid credentials."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class MissingTokenError(APIError):
    def __init__(self, detail: str = "Authentication token required."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidTokenError(APIError):
    def __init__(self, detail: str = "Invalid or expired token."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(APIError):
    def __init__(self, detail: str = "Resource conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class StoreError(APIError):
    """A persistence failure. ``details`` is only shown to clients in debug mode."""

    def __init__(self, detail: str = "Internal server error.", details: Optional[str] = None):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
        self.details = details


def store_error(message: str, exc: Exception) -> StoreError:
    """Log a store failure with its traceback and wrap it for the client."""
    logger.exception("%s", message)
    return StoreError(message, details=str(exc))


def _envelope(message: str, **extra: Any) -> Dict[str, Any]:
    return {"status": "error", "message": message, **extra}


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    content = _envelope(exc.detail)
    details = getattr(exc, "details", None)
    if details and request.app.state.settings.debug:
        content["details"] = details
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    fields = sorted({".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()})
    message = "Invalid request parameters"
    if fields:
        message = f"{message}: {', '.join(f for f in fields if f)}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_envelope(message))


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
