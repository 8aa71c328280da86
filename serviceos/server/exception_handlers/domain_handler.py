"""Translate domain errors into HTTP responses."""

from fastapi import Request
from fastapi.responses import JSONResponse

from serviceos.core.errors import ServiceOSError
from serviceos.core.logging_config import get_logger
from serviceos.core.monitoring import log_error

logger = get_logger(__name__)


async def domain_exception_handler(request: Request, exc: ServiceOSError) -> JSONResponse:
    """
    Answer a domain error with its status code and message.

    Server-side failures (5xx, such as an aborted assistant run or an
    unreachable integration) are logged with their details; client errors are
    logged at debug level only.
    """
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
            extra={"error_type": type(exc).__name__, "details": exc.details, "path": request.url.path},
        )
        log_error(type(exc).__name__, exc.message, {"path": request.url.path, "details": exc.details})
    else:
        logger.debug(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
