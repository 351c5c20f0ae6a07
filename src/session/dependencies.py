from typing import Any

from fastapi import Depends, Request
from redis.asyncio import Redis

from src.core.redis.dependencies import get_redis_client
from src.main.config import Config, get_settings
from src.session.authorization import RequestAuthorizer
from src.session.engine import SessionEngine
from src.session.store.interface import SessionStore
from src.session.store.redis_store import RedisSessionStore


def get_session_store(
    redis_client: Redis = Depends(get_redis_client),
    settings: Config = Depends(get_settings),
) -> SessionStore:
    return RedisSessionStore(redis_client, key_prefix=settings.session.TOKEN_KEY_PREFIX)


def get_session_engine(
    store: SessionStore = Depends(get_session_store),
    settings: Config = Depends(get_settings),
) -> SessionEngine:
    return SessionEngine(settings, store)


def get_request_authorizer(
    request: Request,
    engine: SessionEngine = Depends(get_session_engine),
    settings: Config = Depends(get_settings),
) -> RequestAuthorizer:
    return RequestAuthorizer(
        engine,
        settings.session,
        request_headers=lambda: request.headers,
        request_cookies=lambda: request.cookies,
        request_method=lambda: request.method,
    )


async def get_access_payload(
    authorizer: RequestAuthorizer = Depends(get_request_authorizer),
) -> dict[str, Any]:
    """
    Verified access payload of the current request.

    Raises:
        UnauthorizedException: If the access token or, for state-changing
                               requests, the CSRF token does not verify
    """
    return await authorizer.authorize_access_request()
