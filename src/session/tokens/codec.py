"""
Signing and verification of session tokens.

The codec wraps PyJWT. The token kind travels in the JOSE ``typ`` header so
that an access token can never be presented where a refresh token is expected
(and the other way round) without the caller payload having to reserve a claim
for it.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import jwt

from src.core.errors.exceptions import CoreException
from src.main.config import JWTConfig
from src.session.tokens.payload_schema import TokenType


class TokenError(CoreException):
    pass


class TokenExpiredError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


# Registered claims other than exp belong to the caller payload and are
# carried opaquely; PyJWT would otherwise reject e.g. a foreign "aud", an
# integer "sub" or a future "nbf" on tokens this codec just issued.
PAYLOAD_CLAIM_CHECKS_OFF: dict[str, bool] = {
    "verify_aud": False,
    "verify_iss": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_sub": False,
    "verify_jti": False,
}


class TokenCodec:
    def __init__(self, settings: JWTConfig) -> None:
        self.algorithm = settings.JWT_ALGORITHM
        self.leeway = settings.JWT_LEEWAY_SECONDS
        self._signing_key = settings.signing_key
        self._verifying_key = settings.verifying_key

    def encode(self, claims: Mapping[str, Any], token_type: TokenType) -> str:
        """
        Sign a claims set.

        Args:
            claims: Claims to embed, must already contain 'exp'
            token_type: Value of the JOSE 'typ' header

        Returns:
            str: Compact serialized JWT
        """
        return jwt.encode(
            dict(claims),
            self._signing_key,
            algorithm=self.algorithm,
            headers={"typ": token_type},
        )

    def decode(
        self,
        token: str,
        token_type: TokenType,
        required_claims: Iterable[str] = ("exp", "sid"),
    ) -> dict[str, Any]:
        """
        Verify a token and return its claims.

        Args:
            token: Compact serialized JWT
            token_type: Expected value of the JOSE 'typ' header
            required_claims: Claims that must be present

        Returns:
            dict: The verified claims

        Raises:
            TokenExpiredError: If 'exp' is in the past (beyond the configured leeway)
            InvalidSignatureError: If the signature does not match
            MalformedTokenError: If the token cannot be parsed, has the wrong type
                                 or misses a required claim
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            # header validation (e.g. a non-string "kid") raises outside DecodeError
            raise MalformedTokenError("Token cannot be parsed") from exc

        if header.get("typ") != token_type:
            raise MalformedTokenError(
                "Unexpected token type",
                {"expected": token_type, "received": header.get("typ")},
            )

        try:
            return jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={
                    **PAYLOAD_CLAIM_CHECKS_OFF,
                    "require": list(required_claims),
                },
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError("Invalid token signature") from exc
        except jwt.PyJWTError as exc:
            raise MalformedTokenError("Invalid token") from exc
