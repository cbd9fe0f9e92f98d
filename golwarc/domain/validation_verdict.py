"""Result contract of the URL validator."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RejectionReason(str, Enum):
    EMPTY_URL = "empty-url"
    MALFORMED = "malformed"
    DISALLOWED_SCHEME = "disallowed-scheme"
    EMPTY_HOST = "empty-host"
    LOCALHOST = "is-localhost"
    DNS_FAILURE = "dns-resolution-failure"
    LOOPBACK = "resolves-to-loopback"
    PRIVATE = "resolves-to-private"
    LINK_LOCAL = "resolves-to-link-local"
    MULTICAST = "resolves-to-multicast"


@dataclass(frozen=True)
class ValidationVerdict:
    """Either "allowed" or "rejected" with exactly one reason.

    Truthiness follows `allowed`, so callers can write `if validator.validate(url):`.
    """

    allowed: bool
    reason: Optional[RejectionReason] = None
    detail: str = ""

    @classmethod
    def allow(cls) -> "ValidationVerdict":
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: RejectionReason, detail: str = "") -> "ValidationVerdict":
        return cls(allowed=False, reason=reason, detail=detail)

    def __bool__(self) -> bool:
        return self.allowed

    def __str__(self) -> str:
        if self.allowed:
            return "allowed"
        if self.detail:
            return f"rejected ({self.reason.value}): {self.detail}"
        return f"rejected ({self.reason.value})"
