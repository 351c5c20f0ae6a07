from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar, cast

from pydantic import ValidationError
from redis.asyncio import Redis
import redis.exceptions as redis_exc

from loggers import get_logger
from src.core.errors.exceptions import StoreUnavailableException
from src.core.utils.security import mask_identifier
from src.session.store.interface import SessionStore
from src.session.store.schemas import SessionRecord

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_redis_errors(func: F) -> F:
    """
    Re-raise Redis connectivity and protocol errors as StoreUnavailableException.

    Missing keys are not errors for the store, so nothing here ever turns into
    an authorization failure; callers see either a result or an infrastructure
    problem.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except redis_exc.RedisError as exc:
            logger.error("[RedisSessionStore] '%s' failed: %s", func.__name__, exc)
            raise StoreUnavailableException(
                "Session store is unavailable",
                {"operation": func.__name__, "error": type(exc).__name__},
            ) from exc

    return cast(F, wrapper)


class RedisSessionStore(SessionStore):
    def __init__(self, redis_client: Redis, key_prefix: str = "jwt_") -> None:
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _session_key(self, session_id: str) -> str:
        return f"{self.key_prefix}session:{session_id}"

    def _namespace_key(self, namespace: str) -> str:
        return f"{self.key_prefix}namespace:{namespace}"

    @translate_redis_errors
    async def put(self, session_id: str, record: SessionRecord, ttl: int) -> None:
        await self.redis.set(
            self._session_key(session_id), record.model_dump_json(), ex=ttl
        )

    @translate_redis_errors
    async def get(self, session_id: str) -> SessionRecord | None:
        raw = await self.redis.get(self._session_key(session_id))
        if raw is None:
            return None

        raw_str = raw.decode() if isinstance(raw, (bytes, bytearray)) else raw
        try:
            return SessionRecord.model_validate_json(raw_str)
        except ValidationError:
            logger.error(
                "[RedisSessionStore] Corrupted record for session '%s'",
                mask_identifier(session_id),
            )
            return None

    @translate_redis_errors
    async def delete(self, session_id: str) -> bool:
        deleted: int = await self.redis.delete(self._session_key(session_id))
        return deleted > 0

    @translate_redis_errors
    async def add_to_namespace(self, namespace: str, session_id: str, ttl: int) -> None:
        key = self._namespace_key(namespace)
        await cast(Awaitable[int], self.redis.sadd(key, session_id))
        await self.redis.expire(key, ttl)

    @translate_redis_errors
    async def remove_from_namespace(self, namespace: str, session_id: str) -> None:
        await cast(
            Awaitable[int], self.redis.srem(self._namespace_key(namespace), session_id)
        )

    @translate_redis_errors
    async def namespace_members(self, namespace: str) -> set[str]:
        members = await cast(
            Awaitable[set[Any]], self.redis.smembers(self._namespace_key(namespace))
        )
        return {
            m.decode() if isinstance(m, (bytes, bytearray)) else str(m)
            for m in members
        }
