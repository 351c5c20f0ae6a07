"""
Request-level authorization on top of the session engine.

The host framework hands over three accessors (headers, cookies, method)
instead of mixing this behaviour into its controllers. Tokens are taken from
the configured header first and from the configured cookie second.
"""

from collections.abc import Callable, Mapping
from typing import Any

from loggers import get_logger
from src.core.errors.exceptions import UnauthorizedException
from src.core.utils.security import mask_identifier
from src.main.config import SessionConfig
from src.session.engine import UNAUTHORIZED_MESSAGE, OnEarlyRefresh, SessionEngine
from src.session.schemas import SessionTokens

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def _lookup(mapping: Mapping[str, str], name: str) -> str | None:
    value = mapping.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in mapping.items():
        if key.lower() == lowered:
            return candidate
    return None


def strip_bearer(value: str) -> str:
    if value.lower().startswith(BEARER_PREFIX):
        return value[len(BEARER_PREFIX) :].strip()
    return value.strip()


class RequestAuthorizer:
    def __init__(
        self,
        engine: SessionEngine,
        settings: SessionConfig,
        request_headers: Callable[[], Mapping[str, str]],
        request_cookies: Callable[[], Mapping[str, str]],
        request_method: Callable[[], str],
    ) -> None:
        self.engine = engine
        self.settings = settings
        self.request_headers = request_headers
        self.request_cookies = request_cookies
        self.request_method = request_method

    def found_token(self, header_name: str, cookie_name: str) -> str | None:
        header_value = _lookup(self.request_headers(), header_name)
        if header_value:
            return strip_bearer(header_value) or None
        cookie_value = self.request_cookies().get(cookie_name)
        return cookie_value or None

    def csrf_required(self) -> bool:
        return self.request_method().upper() not in self.settings.CSRF_SAFE_METHODS

    async def authorize_access_request(self) -> dict[str, Any]:
        """
        Authorize an ordinary request with the access token.

        Returns:
            dict: The verified access payload ('sid' and 'exp' included)

        Raises:
            UnauthorizedException: If the token is missing or invalid, or the
                                   request is state-changing and the CSRF token
                                   is missing or does not match
        """
        token = self.found_token(
            self.settings.ACCESS_HEADER, self.settings.ACCESS_COOKIE
        )
        if not token:
            logger.debug("[RequestAuthorizer] Access token not found")
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)

        payload = await self.engine.verify_access(token)
        await self._enforce_csrf(payload["sid"])
        return payload

    async def authorize_refresh_request(self) -> dict[str, Any]:
        """Authorize a request with the refresh token; returns its claims."""
        token = self._refresh_token()
        claims = await self.engine.verify_refresh(token)
        await self._enforce_csrf(claims["sid"])
        return claims

    async def refresh_request(
        self,
        new_access_payload: Mapping[str, Any] | None = None,
        on_early_refresh: OnEarlyRefresh | None = None,
    ) -> SessionTokens:
        token = self._refresh_token()
        if self.csrf_required():
            claims = await self.engine.verify_refresh(token)
            await self._enforce_csrf(claims["sid"])
        return await self.engine.refresh(token, new_access_payload, on_early_refresh)

    def _refresh_token(self) -> str:
        token = self.found_token(
            self.settings.REFRESH_HEADER, self.settings.REFRESH_COOKIE
        )
        if not token:
            logger.debug("[RequestAuthorizer] Refresh token not found")
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)
        return token

    async def _enforce_csrf(self, session_id: str) -> None:
        if not self.csrf_required():
            return
        candidate = _lookup(self.request_headers(), self.settings.CSRF_HEADER)
        if not await self.engine.verify_csrf(session_id, candidate):
            logger.warning(
                "[RequestAuthorizer] CSRF token %s for %s request of session '%s'",
                "mismatch" if candidate else "missing",
                self.request_method().upper(),
                mask_identifier(session_id),
            )
            raise UnauthorizedException(UNAUTHORIZED_MESSAGE)
