"""
Logging configuration
loguru sink setup plus per-request context binding
"""
import sys
import uuid

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from lms.config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[request_id]}</cyan> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(settings: Settings) -> None:
    """Replace loguru's default sink with a leveled one that carries request ids"""
    logger.remove()
    logger.configure(extra={"request_id": "-"})
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=LOG_FORMAT,
        serialize=settings.log_json,
        backtrace=not settings.is_production,
        diagnose=not settings.is_production,
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to every log record emitted while handling a request."""

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex[:12]
        with logger.contextualize(request_id=request_id):
            logger.debug(f"{request.method} {request.url.path}")
            response = await call_next(request)
            logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        response.headers[self.header_name] = request_id
        return response
