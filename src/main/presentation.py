from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError

from src.core.errors.exceptions import (
    CoreException,
    InfrastructureException,
    StoreUnavailableException,
    UnauthorizedException,
)
from src.core.errors.handlers import (
    CoreExceptionHandler,
    InfrastructureExceptionHandler,
    RequestValidationExceptionHandler,
    StoreUnavailableExceptionHandler,
    UnauthorizedExceptionHandler,
    as_exception_handler,
)
from src.healthcheck import routers as healthcheck_routers
from src.session import routers as session_routers

# Starlette resolves a handler by walking the exception's MRO, so a subclass
# entry (e.g. StoreUnavailable) wins over its base (Infrastructure).
EXCEPTION_HANDLERS: tuple[tuple[type[Exception], Any], ...] = (
    (StoreUnavailableException, StoreUnavailableExceptionHandler()),
    (InfrastructureException, InfrastructureExceptionHandler()),
    (UnauthorizedException, UnauthorizedExceptionHandler()),
    (RequestValidationError, RequestValidationExceptionHandler()),
    (CoreException, CoreExceptionHandler()),
)


def include_routers(app: FastAPI) -> None:
    """
    Mount the session API under /v1/session and the health check at the root.
    """
    v1_router = APIRouter(prefix="/v1")
    v1_router.include_router(
        session_routers.router, prefix="/session", tags=["Session"]
    )
    app.include_router(v1_router)
    app.include_router(healthcheck_routers.router, tags=["Health"])


def include_exceptions_handlers(app: FastAPI) -> None:
    for exc_class, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_class, as_exception_handler(handler))
