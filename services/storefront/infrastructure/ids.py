from __future__ import annotations

import secrets
import time


class TokenIdProvider:
    def __init__(self, prefix: str, length: int) -> None:
        self._prefix = prefix
        self._length = length

    def generate(self) -> str:
        token = secrets.token_urlsafe(self._length)
        return f"{self._prefix}_{token[: self._length]}"


class OrderNumberProvider:
    """Human-readable order numbers, e.g. ``ORD-1718000000000-4821``."""

    def __init__(self, prefix: str = "ORD") -> None:
        self._prefix = prefix

    def generate(self) -> str:
        millis = int(time.time() * 1000)
        return f"{self._prefix}-{millis}-{secrets.randbelow(10_000):04d}"


class TrackingNumberProvider:
    def __init__(self, length: int = 12) -> None:
        self._length = length

    def generate(self) -> str:
        return secrets.token_hex(self._length)[: self._length].upper()
