"""Result type returned by the lifecycle rule predicates."""

from dataclasses import dataclass
from enum import Enum


class DenialKind(str, Enum):
    """Why a lifecycle rule refused a request."""

    INVALID_TRANSITION = "InvalidTransition"
    MISSING_REASON = "MissingReason"
    REVERSION_BLOCKED = "ReversionBlockedByDownstreamRecord"
    DOCTOR_ASSIGNMENT_NOT_ALLOWED = "DoctorAssignmentNotAllowed"


@dataclass(frozen=True)
class Decision:
    """Allow, or deny with a kind and a human readable reason."""

    allowed: bool
    kind: DenialKind | None = None
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, kind: DenialKind, reason: str) -> "Decision":
        return cls(allowed=False, kind=kind, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed
