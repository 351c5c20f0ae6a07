from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SessionRecord(BaseModel):
    """Server-side state of one session, keyed by its session identifier"""

    csrf_secret: str  # base64 of the raw secret bytes
    access_expiration: int  # unix timestamp of the paired access token expiry
    refresh_payload: dict[str, Any] = Field(default_factory=dict)
    namespace: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")
