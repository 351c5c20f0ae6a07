"""
One-time-pad masking of the per-session CSRF secret.

The raw secret never leaves the server. Every response carries
``base64url(pad + (pad XOR secret))`` with a fresh random pad, so the wire value
changes on every call and compression side channels (BREACH) learn nothing
about the secret itself.
"""

import base64
import binascii
import hmac
import secrets


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right, strict=True))


class CSRFMasker:
    def __init__(self, secret_length: int = 32) -> None:
        self.secret_length = secret_length

    def generate_secret(self) -> bytes:
        return secrets.token_bytes(self.secret_length)

    def mask(self, secret: bytes) -> str:
        pad = secrets.token_bytes(len(secret))
        return base64.urlsafe_b64encode(pad + _xor(pad, secret)).decode("ascii")

    def unmask(self, token: str) -> bytes:
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise ValueError("CSRF token is not valid base64") from exc

        if not raw or len(raw) % 2:
            raise ValueError("CSRF token has an invalid length")

        half = len(raw) // 2
        return _xor(raw[:half], raw[half:])

    def verify(self, candidate: str | None, stored_secret: bytes) -> bool:
        """Constant-time check of a masked candidate against the stored secret."""
        if not candidate:
            return False
        try:
            unmasked = self.unmask(candidate)
        except ValueError:
            return False
        return hmac.compare_digest(unmasked, stored_secret)


def encode_secret(secret: bytes) -> str:
    return base64.b64encode(secret).decode("ascii")


def decode_secret(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"))
