"""
Error handler middleware for centralized exception handling.

Maps application exceptions to JSON error responses so handlers can raise
freely and never build error bodies themselves.
"""

import logging
from typing import Callable

from aiohttp import web
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import (
    BookingTimeoutError,
    NotFoundError,
    SlotConflictError,
    StorageUnavailableError,
    StudioError,
)

logger = logging.getLogger(__name__)


def status_for(error: StudioError) -> int:
    """HTTP status for an application error."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, SlotConflictError):
        return 409
    if isinstance(error, (StorageUnavailableError, BookingTimeoutError)):
        return 503
    return 400


def error_response(status: int, error: str, message: str, retryable: bool = False, **extra) -> web.Response:
    body = {"error": error, "message": message, "retryable": retryable}
    body.update(extra)
    return web.json_response(body, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Callable):
    """Turn exceptions raised by handlers into JSON responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except StudioError as e:
        status = status_for(e)
        log = logger.warning if status >= 500 else logger.info
        log(f"{request.method} {request.path} -> {status} {type(e).__name__}: {e.message}")
        return error_response(status, type(e).__name__, e.message, e.retryable)
    except PydanticValidationError as e:
        return error_response(
            400,
            "ValidationError",
            "Invalid request",
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        )
    except Exception as e:
        logger.error(
            f"Unhandled error on {request.method} {request.path}: {e}",
            exc_info=True,
        )
        return error_response(500, "InternalError", "Internal server error")
