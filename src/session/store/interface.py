from abc import ABC, abstractmethod

from src.session.store.schemas import SessionRecord


class SessionStore(ABC):
    @abstractmethod
    async def put(self, session_id: str, record: SessionRecord, ttl: int) -> None:
        """Store a session record that expires after `ttl` seconds."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, session_id: str) -> SessionRecord | None:
        """Fetch a session record; None when it is absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Delete a session record; True when a live record was removed."""
        raise NotImplementedError

    @abstractmethod
    async def add_to_namespace(self, namespace: str, session_id: str, ttl: int) -> None:
        """Index a session under a namespace (e.g. a user) for bulk revocation."""
        raise NotImplementedError

    @abstractmethod
    async def remove_from_namespace(self, namespace: str, session_id: str) -> None:
        """Drop a session from a namespace index."""
        raise NotImplementedError

    @abstractmethod
    async def namespace_members(self, namespace: str) -> set[str]:
        """Get all session ids indexed under a namespace."""
        raise NotImplementedError
