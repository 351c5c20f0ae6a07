from typing import cast

from redis.asyncio import Redis

from loggers import get_logger
from src.main.config import RedisConfig

logger = get_logger(__name__)


def create_redis_client(redis_config: RedisConfig) -> Redis:
    """
    Build the async client used by the session store.

    Responses are decoded to str because records are stored as JSON text.
    The socket timeout bounds every store call, so an unreachable server
    surfaces as an error rather than a stalled request.
    """
    try:
        client = Redis.from_url(
            redis_config.dsn,
            decode_responses=True,
            socket_timeout=redis_config.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=redis_config.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    except ValueError as exc:
        logger.error("[Redis] Invalid connection settings: %s", exc)
        raise
    return cast(Redis, client)
