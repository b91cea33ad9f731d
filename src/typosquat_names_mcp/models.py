"""
Shared data types for the domain status engine.

Each lookup tier returns either an Outcome (the domain was classified) or a
TierFailure (the tier could not decide and the cascade should move on).
"""

from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    """Registration status of a domain."""

    AVAILABLE = "available"  # not registered
    REGISTERED = "registered"
    PARKED = "parked"  # registered, serving a placeholder or sale page
    TIMEOUT = "timeout"  # DNS did not answer in time

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DomainCandidate:
    """A generated domain waiting to be resolved."""

    domain: str
    transformation: str
    score: float | None = None


@dataclass(frozen=True)
class TierFailure:
    """A tier could not classify the domain."""

    tier: str
    error_type: str  # "unsupported", "connection", "timeout", "protocol", "ambiguous"
    message: str = ""

    @property
    def is_timeout(self) -> bool:
        return self.error_type == "timeout"


@dataclass(frozen=True)
class ResolvedCandidate:
    """A candidate paired with its outcome (None when status checks are off)."""

    candidate: DomainCandidate
    outcome: Outcome | None = None

    @property
    def domain(self) -> str:
        return self.candidate.domain


TierResult = Outcome | TierFailure
