from collections.abc import Awaitable
from typing import cast

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
import redis.exceptions as redis_exc

from loggers import get_logger
from src.core.errors.exceptions import StoreUnavailableException
from src.core.redis.dependencies import get_redis_client

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health/", response_model=dict)
@router.head("/health/", include_in_schema=False)
async def check_health(
    redis_client: Redis = Depends(get_redis_client),
) -> dict[str, str]:
    """Health check endpoint; also verifies the session store answers."""
    try:
        await cast(Awaitable[bool], redis_client.ping())
    except redis_exc.RedisError as exc:
        logger.error("[HealthCheck] Session store ping failed: %s", exc)
        raise StoreUnavailableException("Session store ping failed") from exc
    return {"status": "ok", "store": "ok"}
