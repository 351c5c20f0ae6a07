from typing import Any, Literal, TypedDict

ACCESS_TOKEN_TYPE = "at+jwt"
REFRESH_TOKEN_TYPE = "rt+jwt"

TokenType = Literal["at+jwt", "rt+jwt"]

# Claims the engine injects; caller payload keys with these names are overridden
RESERVED_CLAIMS = ("sid", "exp")


class SessionClaims(TypedDict):
    """Claims every issued token carries on top of the caller payload"""

    sid: str  # Session identifier, rotated on every refresh
    exp: int  # Expiration timestamp


def merge_claims(payload: dict[str, Any] | None, claims: SessionClaims) -> dict[str, Any]:
    return {**(payload or {}), **claims}


def strip_reserved_claims(claims: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}
