from typing import Optional

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import RATE_LIMIT
from .collector import LndCollector, build_collector
from .logging import LoggingMiddleware
from .routes import exporter


def _rate_limit_key(request: Request) -> str:
    return request.headers.get("x-api-key") or get_remote_address(request)


def create_app(collector: Optional[LndCollector] = None, rate_limit: str = RATE_LIMIT) -> FastAPI:
    app = FastAPI(title="LND Prometheus exporter")
    app.state.collector = collector if collector is not None else build_collector()

    limiter = Limiter(key_func=_rate_limit_key, default_limits=[rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.include_router(exporter.router)
    return app
