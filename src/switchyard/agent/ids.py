"""Ascending identifiers for sessions, messages and parts.

Identifiers look like ``msg_0193a1b2c3d4e5AbCdEfGhIjKlMn``: a kind prefix, fourteen
hex digits encoding ``milliseconds * 0x1000 + counter`` and fourteen random
base62 characters. Within one generator the numeric part is strictly increasing
per kind, even if the wall clock moves backwards.
"""

from __future__ import annotations

import random
import string
import threading
import time
from typing import Literal

IdKind = Literal["session", "message", "part"]

PREFIXES: dict[str, str] = {
    "session": "ses",
    "message": "msg",
    "part": "prt",
}

_RANDOM_ALPHABET = string.digits + string.ascii_letters
_RANDOM_LENGTH = 14
_COUNTER_BITS = 0x1000


class IdentifierGenerator:
    """Thread-safe generator of strictly increasing identifiers per kind."""

    _last: dict[str, int]
    _lock: threading.Lock

    def __init__(self) -> None:
        self._last = {}
        self._lock = threading.Lock()

    def ascending(self, kind: IdKind) -> str:
        prefix = PREFIXES.get(kind)
        if prefix is None:
            raise ValueError(f"Unknown identifier kind: {kind!r}")

        now = int(time.time() * 1000) * _COUNTER_BITS
        with self._lock:
            value = max(now, self._last.get(kind, -1) + 1)
            self._last[kind] = value

        suffix = "".join(random.choices(_RANDOM_ALPHABET, k=_RANDOM_LENGTH))
        return f"{prefix}_{value:014x}{suffix}"

    __call__ = ascending


# Process-wide default generator.
default_ids = IdentifierGenerator()


def ascending(kind: IdKind) -> str:
    """Return the next identifier for ``kind`` from the default generator."""
    return default_ids.ascending(kind)
