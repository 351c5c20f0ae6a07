from fastapi import FastAPI
from redis.exceptions import RedisError

from loggers import get_logger
from src.core.errors.exceptions import StoreUnavailableException
from src.core.redis.core import create_redis_client
from src.main.config import RedisConfig

logger = get_logger(__name__)


async def on_redis_startup(app: FastAPI, redis_config: RedisConfig) -> None:
    """
    Connect the session store backend and expose the client on app.state.

    Raises:
        StoreUnavailableException: If the server does not answer PING
    """
    redis_client = create_redis_client(redis_config)
    try:
        answered = await redis_client.ping()
    except RedisError as exc:
        await redis_client.aclose()
        raise StoreUnavailableException(
            "Session store is unreachable at startup",
            additional_info={"host": redis_config.REDIS_HOST, "error": str(exc)},
        ) from exc
    if not answered:
        await redis_client.aclose()
        raise StoreUnavailableException(
            "Session store did not answer PING at startup",
            additional_info={"host": redis_config.REDIS_HOST},
        )
    app.state.redis_client = redis_client
    logger.info(
        "[Redis] Session store connected at %s:%s",
        redis_config.REDIS_HOST,
        redis_config.REDIS_PORT,
    )


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is None:
        return
    await redis_client.aclose()
    app.state.redis_client = None
    logger.info("[Redis] Session store connection closed")
