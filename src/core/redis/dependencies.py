from fastapi import Request
from redis.asyncio import Redis

from src.core.errors.exceptions import StoreUnavailableException


async def get_redis_client(request: Request) -> Redis:
    redis_client: Redis | None = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        raise StoreUnavailableException(
            "Session store client is missing from app.state",
            additional_info={"path": request.url.path},
        )
    return redis_client
