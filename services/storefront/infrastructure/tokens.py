"""HS256 bearer tokens. The ``sub`` claim carries the numeric user id."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time


class InvalidTokenError(ValueError):
    pass


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64url_decode(value: str) -> bytes:
    pad = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + pad)


class Hs256TokenVerifier:
    def __init__(self, secret: str) -> None:
        self._secret = secret.encode()

    def _sign(self, signing_input: bytes) -> str:
        return _b64url_encode(hmac.new(self._secret, signing_input, hashlib.sha256).digest())

    def issue(self, user_id: int, *, ttl_seconds: int = 24 * 60 * 60) -> str:
        header = {"alg": "HS256", "typ": "JWT"}
        payload = {"sub": str(user_id), "exp": int(time.time()) + ttl_seconds}
        header_b64 = _b64url_encode(json.dumps(header, separators=(",", ":")).encode())
        payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode())
        signature = self._sign(f"{header_b64}.{payload_b64}".encode())
        return f"{header_b64}.{payload_b64}.{signature}"

    def verify(self, token: str) -> int:
        """Return the user id carried by ``token``.

        Raises:
            InvalidTokenError: on a malformed, tampered or expired token
        """
        parts = token.split(".")
        if len(parts) != 3:
            raise InvalidTokenError("Malformed token")
        header_b64, payload_b64, signature = parts
        expected = self._sign(f"{header_b64}.{payload_b64}".encode())
        if not hmac.compare_digest(expected, signature):
            raise InvalidTokenError("Invalid signature")

        try:
            header = json.loads(_b64url_decode(header_b64))
            payload = json.loads(_b64url_decode(payload_b64))
        except (ValueError, UnicodeDecodeError) as exc:
            raise InvalidTokenError("Malformed token") from exc
        if not isinstance(header, dict) or header.get("alg") != "HS256":
            raise InvalidTokenError("Unsupported algorithm")
        if not isinstance(payload, dict):
            raise InvalidTokenError("Malformed token")

        exp = payload.get("exp")
        if exp is not None and not isinstance(exp, (int, float)):
            raise InvalidTokenError("Malformed expiry")
        if exp is not None and time.time() > exp:
            raise InvalidTokenError("Token expired")
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Token has no user id") from exc
