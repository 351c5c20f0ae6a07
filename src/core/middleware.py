from collections.abc import Awaitable, Callable
import time

from fastapi import FastAPI, Request
from starlette.responses import Response

from loggers import get_logger
from src.main.config import get_settings

timing_logger = get_logger("src.request.timing", plain_format=True)

# Responses may carry tokens in their body or in Set-Cookie
SECURITY_HEADERS: dict[str, str] = {
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "frame-ancestors 'none'",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares in proper order"""
    slow_request_seconds = get_settings().app.SLOW_REQUEST_SECONDS

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if "vary" not in response.headers:
            response.headers["Vary"] = "Authorization, Cookie"
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if elapsed < slow_request_seconds:
            timing_logger.info(
                f"[FAST] {request.method} {request.url.path} "
                f"|{elapsed:.3f}s|{response.status_code}"
            )
        else:
            timing_logger.warning(
                f"[SLOW] {request.method} {request.url.path} "
                f"|{elapsed:.3f}s|{response.status_code}"
            )
        return response
