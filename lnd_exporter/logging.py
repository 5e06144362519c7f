import sys
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .config import LOG_LEVEL


logging.basicConfig(stream=sys.stdout, format="%(message)s", level=getattr(logging, LOG_LEVEL, logging.INFO))
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
)
log = structlog.get_logger()

req_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        req_id_var.set(request_id)
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "request_failed",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path),
                error=str(e),
            )
            raise
        duration = time.time() - start
        log.info(
            "request",
            request_id=request_id,
            method=request.method,
            path=str(request.url.path),
            remote=request.client.host if request.client else None,
            status=response.status_code,
            duration=duration,
        )
        req_id_var.set(None)
        response.headers["X-Request-ID"] = request_id
        return response
