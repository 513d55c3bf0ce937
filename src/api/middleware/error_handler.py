import traceback
from datetime import datetime, timezone
from typing import Union

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from src.core.exceptions import CircuitOpenError, ServiceException, ServiceUnavailableError
from src.core.logging import get_logger

logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def global_exception_handler(
    request: Request, exc: Union[Exception, ServiceException]
):
    """Global exception handler for all exceptions."""

    if isinstance(exc, CircuitOpenError):
        # Protective fail-fast, not a fault: report as a labelled 503
        logger.info(
            "circuit_open_response",
            breaker=exc.breaker_name,
            retry_after=exc.retry_after_seconds,
            path=request.url.path,
        )
        exc = ServiceUnavailableError.from_circuit_open(exc)

    if isinstance(exc, ServiceException):
        error_response = {
            "error": {
                "code": exc.error_code,
                "message": exc.detail,
                "type": exc.__class__.__name__,
                "metadata": exc.metadata,
                "timestamp": _timestamp(),
            }
        }
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response,
            headers=exc.headers,
        )

    elif isinstance(exc, HTTPException):
        # Handle FastAPI HTTP exceptions
        error_response = {
            "error": {
                "code": f"HTTP_{exc.status_code}",
                "message": exc.detail,
                "type": exc.__class__.__name__,
                "timestamp": _timestamp(),
            }
        }
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response,
            headers=exc.headers,
        )

    else:
        # Handle unexpected exceptions
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        error_response = {
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "type": exc.__class__.__name__,
                "detail": str(exc),
                "traceback": traceback.format_exc() if request.app.debug else None,
                "timestamp": _timestamp(),
            }
        }
        return JSONResponse(status_code=500, content=error_response)
