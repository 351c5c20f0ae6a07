from typing import Any

from pydantic import BaseModel, ConfigDict


class Base(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")


class SuccessResponse(Base):
    success: bool


class SessionTokens(Base):
    access_token: str
    refresh_token: str
    csrf_token: str
    session_id: str
    access_expires_at: int
    refresh_expires_at: int


class AccessPayloadModel(Base):
    payload: dict[str, Any]

