"""Admission controller interfaces.

The API depends on this abstraction (not the concrete implementation) so the
in-process store can be swapped for a shared one (e.g., Redis) when several
instances must enforce a common limit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

UNKNOWN_IDENTIFIER = "unknown"

RATE_LIMITED_REASON = "Too many requests. Please retry later."
DAILY_LIMIT_REASON = "Daily limit exceeded. Please try again tomorrow."


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a single admission check.

    Attributes:
        allowed: Whether the request may proceed.
        reason: Client-facing denial reason (None when allowed).
        remaining: Requests left in the identifier's daily quota.
        retry_after_seconds: Suggested wait in seconds when denied.
    """

    allowed: bool
    reason: str | None
    remaining: int
    retry_after_seconds: int | None = None


class AbstractAdmissionController(ABC):
    """Interface for per-client admission controllers."""

    @abstractmethod
    def check_admission(self, identifier: str, now: float | None = None) -> AdmissionDecision:
        """Decide whether a request from ``identifier`` is admitted.

        An admitted request is counted against the identifier's quotas before
        returning. Implementations never raise for a decision; a denial is a
        regular return value.

        Args:
            identifier: Client key (e.g., IP address). Empty maps to "unknown".
            now: Timestamp from the controller's clock; read from it when omitted.

        Returns:
            AdmissionDecision describing the outcome.
        """
        raise NotImplementedError
