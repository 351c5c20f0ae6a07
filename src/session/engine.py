"""
Session lifecycle: issuing, refreshing and verifying credentials.

A session lineage moves through these states::

    Unauthenticated --login--> Active --access expiry--> RefreshWindow
    RefreshWindow --refresh--> Active (new session id)
    any state --refresh expiry / revoke / superseded--> Expired

Every refresh is single use: the record of the presented refresh token is
replaced by a record under a freshly minted session id, so a stolen refresh
token that is replayed after the legitimate client already refreshed finds no
record and is rejected.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any
from uuid import uuid4

from loggers import get_logger
from src.core.errors.exceptions import StoreUnavailableException, UnauthorizedException
from src.core.utils.datetime_utils import get_utc_now, timestamp_after
from src.core.utils.security import mask_identifier
from src.main.config import Config
from src.session.csrf import CSRFMasker, decode_secret, encode_secret
from src.session.schemas import SessionTokens
from src.session.store.interface import SessionStore
from src.session.store.schemas import SessionRecord
from src.session.tokens.codec import TokenCodec, TokenError
from src.session.tokens.payload_schema import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    SessionClaims,
    TokenType,
    merge_claims,
    strip_reserved_claims,
)

logger = get_logger(__name__)

# The one message clients ever see, whatever the actual cause was
UNAUTHORIZED_MESSAGE = "Unauthorized"

OnEarlyRefresh = Callable[[str, int], Awaitable[None] | None]


class SessionEngine:
    def __init__(
        self,
        settings: Config,
        store: SessionStore,
        codec: TokenCodec | None = None,
        masker: CSRFMasker | None = None,
    ) -> None:
        self.store = store
        self.codec = codec or TokenCodec(settings.jwt)
        self.masker = masker or CSRFMasker(settings.session.CSRF_SECRET_LENGTH)
        self.access_ttl = settings.jwt.ACCESS_TOKEN_TTL_SECONDS
        self.refresh_ttl = settings.jwt.REFRESH_TOKEN_TTL_SECONDS

    async def login(
        self,
        payload: Mapping[str, Any],
        refresh_payload: Mapping[str, Any] | None = None,
        namespace: str | None = None,
    ) -> SessionTokens:
        """
        Open a new session lineage.

        Args:
            payload: Application claims for the access token (e.g. user id)
            refresh_payload: Claims kept with the session and embedded in the
                             refresh token; they seed the access payload on refresh
            namespace: Optional group (e.g. a user) for bulk revocation

        Returns:
            SessionTokens: Access and refresh tokens plus the masked CSRF token
        """
        tokens = await self._issue(
            get_utc_now(), dict(payload), dict(refresh_payload or {}), namespace
        )
        logger.info(
            "[SessionEngine] Session '%s' opened", mask_identifier(tokens.session_id)
        )
        return tokens

    async def refresh(
        self,
        refresh_token: str,
        new_access_payload: Mapping[str, Any] | None = None,
        on_early_refresh: OnEarlyRefresh | None = None,
    ) -> SessionTokens:
        """
        Exchange a refresh token for a new token set under a new session id.

        Args:
            refresh_token: The refresh token issued by login or a previous refresh
            new_access_payload: Claims merged over the stored refresh payload to
                                build the new access token payload
            on_early_refresh: Called with (old session id, stored access expiration)
                              when the paired access token has not expired yet;
                              may be a coroutine function

        Returns:
            SessionTokens: The rotated token set

        Raises:
            UnauthorizedException: If the token is invalid, expired, or its session
                                   no longer exists (expired, revoked or already
                                   refreshed)
            StoreUnavailableException: If the session store cannot be reached
        """
        claims = self._decode(refresh_token, REFRESH_TOKEN_TYPE)
        old_session_id: str = claims["sid"]

        record = await self.store.get(old_session_id)
        if record is None:
            logger.warning(
                "[SessionEngine] Refresh rejected: session '%s' not found "
                "(expired, revoked or already refreshed)",
                mask_identifier(old_session_id),
            )
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)

        now = get_utc_now()
        if now.timestamp() < record.access_expiration:
            logger.warning(
                "[SessionEngine] Early refresh of session '%s' (access valid until %s)",
                mask_identifier(old_session_id),
                record.access_expiration,
            )
            if on_early_refresh is not None:
                result = on_early_refresh(old_session_id, record.access_expiration)
                if isinstance(result, Awaitable):
                    await result

        access_payload = {**record.refresh_payload, **(new_access_payload or {})}
        tokens = await self._issue(
            now, access_payload, dict(record.refresh_payload), record.namespace
        )

        if not await self._retire(old_session_id, record):
            # Another refresh consumed the old record between our get and delete
            logger.warning(
                "[SessionEngine] Concurrent refresh of session '%s' lost the race",
                mask_identifier(old_session_id),
            )
            await self._discard(tokens.session_id, record.namespace)
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)

        logger.info(
            "[SessionEngine] Session '%s' rotated to '%s'",
            mask_identifier(old_session_id),
            mask_identifier(tokens.session_id),
        )
        return tokens

    async def verify_access(self, access_token: str) -> dict[str, Any]:
        """
        Verify an access token without touching the store.

        Returns:
            dict: The caller payload together with 'sid' and 'exp'
        """
        return self._decode(access_token, ACCESS_TOKEN_TYPE)

    async def verify_refresh(self, refresh_token: str) -> dict[str, Any]:
        """Verify a refresh token and require its session to still be live."""
        claims = self._decode(refresh_token, REFRESH_TOKEN_TYPE)
        if await self.store.get(claims["sid"]) is None:
            logger.info(
                "[SessionEngine] Refresh token of unknown session '%s'",
                mask_identifier(claims["sid"]),
            )
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)
        return claims

    async def verify_csrf(self, session_id: str, candidate: str | None) -> bool:
        record = await self.store.get(session_id)
        if record is None:
            logger.info(
                "[SessionEngine] CSRF check for unknown session '%s'",
                mask_identifier(session_id),
            )
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)
        return self.masker.verify(candidate, decode_secret(record.csrf_secret))

    async def revoke(self, session_id: str) -> bool:
        """Log a session out; True when a live session was removed."""
        record = await self.store.get(session_id)
        removed = await self.store.delete(session_id)
        if record is not None and record.namespace:
            await self.store.remove_from_namespace(record.namespace, session_id)
        logger.info(
            "[SessionEngine] Session '%s' revoked (removed=%s)",
            mask_identifier(session_id),
            removed,
        )
        return removed

    async def revoke_namespace(self, namespace: str) -> int:
        """Log out every session indexed under a namespace; returns how many were live."""
        removed = 0
        for session_id in await self.store.namespace_members(namespace):
            if await self.store.delete(session_id):
                removed += 1
            await self.store.remove_from_namespace(namespace, session_id)
        logger.info(
            "[SessionEngine] Namespace '%s' flushed, %s live sessions removed",
            namespace,
            removed,
        )
        return removed

    # ----- internals ----- #
    def _decode(self, token: str, token_type: TokenType) -> dict[str, Any]:
        try:
            return self.codec.decode(token, token_type)
        except TokenError as exc:
            logger.info(
                "[SessionEngine] %s token rejected: %s",
                "Access" if token_type == ACCESS_TOKEN_TYPE else "Refresh",
                exc.message,
            )
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE) from exc

    async def _issue(
        self,
        now: datetime,
        access_payload: dict[str, Any],
        refresh_payload: dict[str, Any],
        namespace: str | None,
    ) -> SessionTokens:
        session_id = str(uuid4())
        csrf_secret = self.masker.generate_secret()
        access_exp = timestamp_after(now, self.access_ttl)
        refresh_exp = timestamp_after(now, self.refresh_ttl)
        refresh_payload = strip_reserved_claims(refresh_payload)

        record = SessionRecord(
            csrf_secret=encode_secret(csrf_secret),
            access_expiration=access_exp,
            refresh_payload=refresh_payload,
            namespace=namespace,
        )
        await self.store.put(session_id, record, self.refresh_ttl)
        if namespace:
            await self.store.add_to_namespace(namespace, session_id, self.refresh_ttl)

        access_claims: SessionClaims = {"sid": session_id, "exp": access_exp}
        refresh_claims: SessionClaims = {"sid": session_id, "exp": refresh_exp}

        return SessionTokens(
            access_token=self.codec.encode(
                merge_claims(access_payload, access_claims), ACCESS_TOKEN_TYPE
            ),
            refresh_token=self.codec.encode(
                merge_claims(refresh_payload, refresh_claims), REFRESH_TOKEN_TYPE
            ),
            csrf_token=self.masker.mask(csrf_secret),
            session_id=session_id,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    async def _retire(self, session_id: str, record: SessionRecord) -> bool:
        """
        Delete a superseded record.

        Returns False only when the store reports that the record was already
        gone. A store failure leaves an orphan that expires with its TTL and
        counts as retired.
        """
        try:
            removed = await self.store.delete(session_id)
            if record.namespace:
                await self.store.remove_from_namespace(record.namespace, session_id)
        except StoreUnavailableException:
            logger.warning(
                "[SessionEngine] Could not delete superseded session '%s'; "
                "it stays until its TTL expires",
                mask_identifier(session_id),
            )
            return True
        return removed

    async def _discard(self, session_id: str, namespace: str | None) -> None:
        try:
            await self.store.delete(session_id)
            if namespace:
                await self.store.remove_from_namespace(namespace, session_id)
        except StoreUnavailableException:
            logger.warning(
                "[SessionEngine] Could not discard session '%s'",
                mask_identifier(session_id),
            )
