"""Security tokens (nonces) guarding metabox submissions.

Tokens are time limited rather than single use: a token is an HMAC over the
current *tick*, the action name and the user.  A tick lasts half the
configured lifetime and tokens of the current and the previous tick are
accepted, so a token stays valid for between one half and one full lifetime.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import time
from collections.abc import Callable
from typing import Any, Protocol

TOKEN_LENGTH = 10


class NonceManager(Protocol):
    def create(self, action: str, user: Any = None) -> str:
        ...

    def verify(self, token: str | None, action: str, user: Any = None) -> bool:
        ...


class HmacNonceManager:
    def __init__(
        self,
        secret: str | bytes,
        *,
        lifetime: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("nonce secret must not be empty")
        if lifetime < 2:
            raise ValueError("nonce lifetime must be at least 2 seconds")
        self._secret = secret.encode("utf-8") if isinstance(secret, str) else secret
        self.lifetime = lifetime
        self._clock = clock

    def _tick(self) -> int:
        return math.ceil(self._clock() / (self.lifetime / 2))

    def _digest(self, tick: int, action: str, user: Any) -> str:
        user_part = "" if user is None else str(user)
        msg = f"{tick}|{action}|{user_part}".encode("utf-8")
        return hmac.new(self._secret, msg, hashlib.sha256).hexdigest()[:TOKEN_LENGTH]

    def create(self, action: str, user: Any = None) -> str:
        return self._digest(self._tick(), action, user)

    def verify(self, token: str | None, action: str, user: Any = None) -> bool:
        if not token or not isinstance(token, str):
            return False
        tick = self._tick()
        return any(
            hmac.compare_digest(token, self._digest(t, action, user))
            for t in (tick, tick - 1)
        )


__all__ = ["HmacNonceManager", "NonceManager", "TOKEN_LENGTH"]
