"""
Explicit success/failure results for outbound calls.

Collaborators (Telegram API, update log) return a CallResult instead of
raising, so callers decide what to do with a failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CallResult:
    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> CallResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> CallResult:
        return cls(ok=False, error=error)
