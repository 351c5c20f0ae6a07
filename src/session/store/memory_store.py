from collections.abc import Callable
import time

from src.session.store.interface import SessionStore
from src.session.store.schemas import SessionRecord


class InMemorySessionStore(SessionStore):
    """Process-local store; suitable for tests and single-worker deployments."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._namespaces: dict[str, set[str]] = {}
        self._expires: dict[str, float] = {}

    def _purge_expired(self, key: str) -> None:
        expires_at = self._expires.get(key)
        if expires_at is None:
            return
        if self._clock() >= expires_at:
            self._records.pop(key, None)
            self._namespaces.pop(key, None)
            self._expires.pop(key, None)

    async def put(self, session_id: str, record: SessionRecord, ttl: int) -> None:
        key = f"session:{session_id}"
        self._records[key] = record
        self._expires[key] = self._clock() + ttl

    async def get(self, session_id: str) -> SessionRecord | None:
        key = f"session:{session_id}"
        self._purge_expired(key)
        return self._records.get(key)

    async def delete(self, session_id: str) -> bool:
        key = f"session:{session_id}"
        self._purge_expired(key)
        self._expires.pop(key, None)
        return self._records.pop(key, None) is not None

    async def add_to_namespace(self, namespace: str, session_id: str, ttl: int) -> None:
        key = f"namespace:{namespace}"
        self._purge_expired(key)
        self._namespaces.setdefault(key, set()).add(session_id)
        self._expires[key] = self._clock() + ttl

    async def remove_from_namespace(self, namespace: str, session_id: str) -> None:
        key = f"namespace:{namespace}"
        self._purge_expired(key)
        self._namespaces.get(key, set()).discard(session_id)

    async def namespace_members(self, namespace: str) -> set[str]:
        key = f"namespace:{namespace}"
        self._purge_expired(key)
        return set(self._namespaces.get(key, set()))
