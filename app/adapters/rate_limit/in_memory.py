"""In-memory sliding-window + daily-quota admission controller.

Notes:
- Per-process only: every worker (or warm serverless instance) keeps its own
  quotas, so the effective limit scales with the number of instances.
- Thread-safe: one lock guards the whole read-modify-write of a decision.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import (
    DAILY_LIMIT_REASON,
    RATE_LIMITED_REASON,
    UNKNOWN_IDENTIFIER,
    AbstractAdmissionController,
    AdmissionDecision,
)

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS_PER_WINDOW = 10
DEFAULT_MAX_REQUESTS_PER_DAY = 100
DAY_SECONDS = 24 * 60 * 60.0


@dataclass
class ClientQuota:
    identifier: str
    daily_reset_at: float
    daily_count: int = 0
    recent_request_timestamps: deque[float] = field(default_factory=deque)


class InMemoryAdmissionController(AbstractAdmissionController):
    """Admission controller keeping one ClientQuota per identifier.

    Each identifier is limited twice:
    - at most ``max_requests_per_window`` requests inside a sliding window of
      ``window_seconds`` ending at "now";
    - at most ``max_requests_per_day`` admitted requests per rolling day, the
      day starting at the identifier's first request.

    Quotas are created lazily and never evicted; a process restart resets them.
    """

    def __init__(
        self,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests_per_window: int = DEFAULT_MAX_REQUESTS_PER_WINDOW,
        max_requests_per_day: int = DEFAULT_MAX_REQUESTS_PER_DAY,
        day_seconds: float = DAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the controller.

        Args:
            window_seconds: Sliding window length in seconds.
            max_requests_per_window: Requests allowed inside one window.
            max_requests_per_day: Requests allowed per daily period.
            day_seconds: Length of the daily period in seconds.
            clock: Monotonic time source returning seconds.

        Raises:
            ValueError: If any limit or duration is invalid.
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_requests_per_window < 1:
            raise ValueError("max_requests_per_window must be >= 1")
        if max_requests_per_day < 1:
            raise ValueError("max_requests_per_day must be >= 1")
        if day_seconds <= 0:
            raise ValueError("day_seconds must be > 0")

        self._window_seconds = window_seconds
        self._max_per_window = max_requests_per_window
        self._max_per_day = max_requests_per_day
        self._day_seconds = day_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._quotas: dict[str, ClientQuota] = {}

    @property
    def max_requests_per_window(self) -> int:
        return self._max_per_window

    @property
    def max_requests_per_day(self) -> int:
        return self._max_per_day

    def _get_or_create_quota(self, identifier: str, now: float) -> ClientQuota:
        quota = self._quotas.get(identifier)
        if quota is None:
            quota = ClientQuota(identifier=identifier, daily_reset_at=now + self._day_seconds)
            self._quotas[identifier] = quota
        return quota

    def _prune(self, quota: ClientQuota, now: float) -> None:
        """Drop timestamps that fell out of the sliding window."""
        timestamps = quota.recent_request_timestamps
        while timestamps and now - timestamps[0] >= self._window_seconds:
            timestamps.popleft()

    @staticmethod
    def _retry_after(until: float, now: float) -> int:
        return max(1, int(math.ceil(until - now)))

    def check_admission(self, identifier: str, now: float | None = None) -> AdmissionDecision:
        """Check and, when admitted, record a request for ``identifier``.

        Args:
            identifier: Client key; empty values share the "unknown" quota.
            now: Timestamp from the same clock; defaults to ``clock()``.

        Returns:
            AdmissionDecision with the outcome and the remaining daily budget.
        """
        key = identifier or UNKNOWN_IDENTIFIER

        with self._lock:
            if now is None:
                now = self._clock()

            quota = self._get_or_create_quota(key, now)

            if now > quota.daily_reset_at:
                quota.daily_count = 0
                quota.daily_reset_at = now + self._day_seconds

            if quota.daily_count >= self._max_per_day:
                return AdmissionDecision(
                    allowed=False,
                    reason=DAILY_LIMIT_REASON,
                    remaining=0,
                    retry_after_seconds=self._retry_after(quota.daily_reset_at, now),
                )

            self._prune(quota, now)
            remaining = self._max_per_day - quota.daily_count

            if len(quota.recent_request_timestamps) >= self._max_per_window:
                oldest = quota.recent_request_timestamps[0]
                return AdmissionDecision(
                    allowed=False,
                    reason=RATE_LIMITED_REASON,
                    remaining=remaining,
                    retry_after_seconds=self._retry_after(oldest + self._window_seconds, now),
                )

            quota.recent_request_timestamps.append(now)
            quota.daily_count += 1
            return AdmissionDecision(
                allowed=True,
                reason=None,
                remaining=remaining - 1,
            )

    def get_quota(self, identifier: str) -> ClientQuota | None:
        """Return the stored quota for ``identifier`` (None if never seen)."""
        with self._lock:
            return self._quotas.get(identifier or UNKNOWN_IDENTIFIER)

    def __len__(self) -> int:
        with self._lock:
            return len(self._quotas)
