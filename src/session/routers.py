"""
Session endpoints for a browser client that already holds a token set.

There is no login route: proving who the user is belongs to the host
application, which opens a session by calling SessionEngine.login with the
claims it has established and hands the resulting tokens to the client.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from loggers import get_logger
from src.core.utils.security import mask_identifier
from src.session.authorization import RequestAuthorizer
from src.session.dependencies import (
    get_access_payload,
    get_request_authorizer,
    get_session_engine,
)
from src.session.engine import SessionEngine
from src.session.schemas import (
    AccessPayloadModel,
    SessionTokens,
    SuccessResponse,
)

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=AccessPayloadModel, status_code=status.HTTP_200_OK)
async def read_session(
    payload: dict[str, Any] = Depends(get_access_payload),
) -> AccessPayloadModel:
    """Return the verified access payload of the caller."""
    return AccessPayloadModel(payload=payload)


@router.post("/refresh", response_model=SessionTokens, status_code=status.HTTP_200_OK)
async def refresh_session(
    authorizer: RequestAuthorizer = Depends(get_request_authorizer),
) -> SessionTokens:
    """
    Rotate the refresh token presented in the header or cookie.

    The new access token carries the payload stored with the session only;
    nothing from the request body reaches its claims.
    """

    async def report_early_refresh(session_id: str, access_expiration: int) -> None:
        logger.warning(
            "[RefreshSession] Session '%s' refreshed before access expiry at %s",
            mask_identifier(session_id),
            access_expiration,
        )

    return await authorizer.refresh_request(
        on_early_refresh=report_early_refresh,
    )


@router.delete("/", response_model=SuccessResponse, status_code=status.HTTP_200_OK)
async def logout(
    payload: dict[str, Any] = Depends(get_access_payload),
    engine: SessionEngine = Depends(get_session_engine),
) -> SuccessResponse:
    """Revoke the caller's session; its refresh token stops working."""
    await engine.revoke(payload["sid"])
    return SuccessResponse(success=True)
