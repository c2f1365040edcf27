"""Usage quota and credit consumption result models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

from fitmatch_app.config import DEFAULT_ADD_LIMIT, DEFAULT_SCAN_LIMIT


class ActionKind(str, Enum):
    SCAN = "scan"
    WARDROBE_ADD = "wardrobe_add"


class ConsumeReason(str, Enum):
    OK = "ok"
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK_ERROR = "network_error"
    OTHER_ERROR = "other_error"


RETRYABLE_REASONS = frozenset({ConsumeReason.NETWORK_ERROR, ConsumeReason.OTHER_ERROR})


@dataclass(frozen=True)
class UsageQuota:
    """Per-account usage counters plus the unlimited (Pro) flag."""

    scans_used: int = 0
    scans_limit: int = DEFAULT_SCAN_LIMIT
    adds_used: int = 0
    adds_limit: int = DEFAULT_ADD_LIMIT
    is_pro: bool = False

    def used(self, kind: ActionKind) -> int:
        return self.scans_used if kind is ActionKind.SCAN else self.adds_used

    def limit(self, kind: ActionKind) -> int:
        return self.scans_limit if kind is ActionKind.SCAN else self.adds_limit

    def remaining(self, kind: ActionKind) -> int:
        return max(0, self.limit(kind) - self.used(kind))

    def can_consume(self, kind: ActionKind) -> bool:
        return self.is_pro or self.remaining(kind) > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConsumeResult:
    """Outcome of one credit consumption attempt."""

    allowed: bool
    reason: ConsumeReason
    used: int = 0
    limit: int = 0
    remaining: int = 0

    @property
    def retryable(self) -> bool:
        return self.reason in RETRYABLE_REASONS

    @classmethod
    def failure(cls, reason: ConsumeReason) -> "ConsumeResult":
        return cls(allowed=False, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value,
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
        }


__all__ = [
    "ActionKind",
    "ConsumeReason",
    "ConsumeResult",
    "RETRYABLE_REASONS",
    "UsageQuota",
]
