# helpdesk/core/logging.py
import logging
import logging.config
import time
import uuid
from contextvars import ContextVar
from typing import Any, Mapping, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("helpdesk.requests")

# id поточного запиту; сервіси логують без доступу до Request
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Додає request_id до кожного запису ("-" поза запитом)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = _request_id.get() or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """Єдина конфігурація логів для апки, Uvicorn і SQLAlchemy."""
    level = level.upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "filters": ["request_id"],
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            "uvicorn.error": {"handlers": ["console"], "level": level, "propagate": False},
            # доступ логуємо самі в RequestIdMiddleware
            "uvicorn.access": {"handlers": [], "level": "WARNING", "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    X-Request-ID: береться з вхідного заголовка або генерується,
    кладеться в request.state і в контекст логів,
    повертається у відповіді. Після відповіді пише один рядок про запит.
    """

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = _request_id.set(request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers[self.header_name] = request_id

        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            extra={"request_id": request_id},
        )
        return response


def log_extra(request: Request) -> Mapping[str, Any]:
    """extra= для обробників помилок, які мають під рукою Request."""
    rid = getattr(request.state, "request_id", None)
    return {"request_id": rid} if rid else {}
