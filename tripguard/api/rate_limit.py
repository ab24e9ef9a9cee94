"""In-memory sliding-window rate limiter for the tripguard REST API.

One limiter instance per process tracks accepted-request timestamps per
(client identifier, route category) key. Each category carries its own
budget:

  - auth       10/minute  (sign-in and session endpoints)
  - read       60/minute  (listing and detail endpoints)
  - write      30/minute  (create/update/delete)
  - sensitive   5/minute  (admin views, account deletion, feedback)

No external dependencies (Redis, etc.) and no persistence: counters reset
when the process restarts. Stale keys are swept lazily from the request
path, so no background timer is needed.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from loguru import logger

# All clients without forwarding headers share this bucket.
UNIDENTIFIED_CLIENT = "unknown"

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."


class RateLimitCategory(StrEnum):
    """Route classes with independent rate-limit budgets."""

    AUTH = "auth"
    READ = "read"
    WRITE = "write"
    SENSITIVE = "sensitive"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Budget for one category: at most max_requests per window_ms."""

    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be positive")


DEFAULT_POLICIES: Mapping[RateLimitCategory, RateLimitPolicy] = MappingProxyType(
    {
        RateLimitCategory.AUTH: RateLimitPolicy(max_requests=10, window_ms=60_000),
        RateLimitCategory.READ: RateLimitPolicy(max_requests=60, window_ms=60_000),
        RateLimitCategory.WRITE: RateLimitPolicy(max_requests=30, window_ms=60_000),
        RateLimitCategory.SENSITIVE: RateLimitPolicy(max_requests=5, window_ms=60_000),
    }
)


@dataclass(frozen=True)
class Allowed:
    """The request fits the budget and has been recorded."""

    limit: int
    remaining: int

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Limited:
    """The budget is exhausted; the request was not recorded.

    retry_after is in whole seconds, reset is an epoch timestamp in seconds.
    """

    retry_after: int
    limit: int
    remaining: int
    reset: int

    @property
    def allowed(self) -> bool:
        return False

    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


RateLimitDecision = Allowed | Limited


def client_identifier(headers: Mapping[str, str]) -> str:
    """Derive the rate-limit client id from proxy headers.

    Uses the first entry of X-Forwarded-For, then X-Real-IP, then the
    shared UNIDENTIFIED_CLIENT bucket. Pass a case-insensitive mapping
    (Starlette Headers) or one with lower-case keys.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNIDENTIFIED_CLIENT


def _epoch_ms() -> float:
    return time.time() * 1000


class SlidingWindowRateLimiter:
    """Sliding-window rate limiter keyed by (client, category).

    Tracks accepted request timestamps per key. On each check, entries that
    fell out of the category's window are pruned, then the remaining count
    is compared against the category's budget. Rejected calls are never
    recorded, so hammering a limited key does not extend the lockout.

    The whole check runs under one lock: FastAPI executes sync dependencies
    on a thread pool, and an unguarded read-prune-append would let two
    concurrent requests both see "under limit".
    """

    def __init__(
        self,
        policies: Mapping[RateLimitCategory, RateLimitPolicy] = DEFAULT_POLICIES,
        clock: Callable[[], float] | None = None,
        sweep_interval_ms: int | None = None,
    ) -> None:
        missing = set(RateLimitCategory) - set(policies)
        if missing:
            names = ", ".join(sorted(str(m) for m in missing))
            raise ValueError(f"Missing rate-limit policy for: {names}")

        self._policies: Mapping[RateLimitCategory, RateLimitPolicy] = MappingProxyType(
            {RateLimitCategory(k): v for k, v in policies.items()}
        )
        self._clock = clock or _epoch_ms
        longest_window = max(p.window_ms for p in self._policies.values())
        self._sweep_interval_ms = max(sweep_interval_ms or 0, longest_window)
        self._requests: dict[tuple[str, RateLimitCategory], list[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = self._clock()

    @property
    def policies(self) -> Mapping[RateLimitCategory, RateLimitPolicy]:
        return self._policies

    @property
    def sweep_interval_ms(self) -> int:
        return self._sweep_interval_ms

    @property
    def tracked_keys(self) -> int:
        """Number of (client, category) keys currently held in memory."""
        with self._lock:
            return len(self._requests)

    def policy(self, category: RateLimitCategory | str) -> RateLimitPolicy:
        return self._policies[RateLimitCategory(category)]

    def check(self, client_key: str, category: RateLimitCategory | str) -> RateLimitDecision:
        """Decide whether a request from `client_key` in `category` may proceed.

        Raises ValueError for a category outside RateLimitCategory.
        """
        category = RateLimitCategory(category)
        policy = self._policies[category]
        key = (client_key, category)

        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self._sweep_interval_ms:
                self._sweep(now)

            timestamps = self._requests.get(key, [])
            _prune(timestamps, now, policy.window_ms)

            if len(timestamps) >= policy.max_requests:
                self._requests[key] = timestamps
                retry_after_ms = policy.window_ms - (now - timestamps[0])
                return Limited(
                    retry_after=math.ceil(retry_after_ms / 1000),
                    limit=policy.max_requests,
                    remaining=0,
                    reset=math.ceil((now + retry_after_ms) / 1000),
                )

            timestamps.append(now)
            self._requests[key] = timestamps
            return Allowed(
                limit=policy.max_requests,
                remaining=policy.max_requests - len(timestamps),
            )

    def cleanup(self) -> int:
        """Sweep now. Returns the number of keys removed."""
        with self._lock:
            return self._sweep(self._clock())

    def reset(self) -> None:
        """Forget every tracked key (for testing)."""
        with self._lock:
            self._requests.clear()
            self._last_sweep = self._clock()

    def _sweep(self, now: float) -> int:
        self._last_sweep = now
        stale_keys = []
        for key, timestamps in self._requests.items():
            _prune(timestamps, now, self._policies[key[1]].window_ms)
            if not timestamps:
                stale_keys.append(key)
        for key in stale_keys:
            del self._requests[key]
        if stale_keys:
            logger.debug(
                "Rate limiter sweep removed {} key(s), {} tracked",
                len(stale_keys),
                len(self._requests),
            )
        return len(stale_keys)


def _prune(timestamps: list[float], now: float, window_ms: int) -> None:
    """Drop entries older than the window from the front of a sorted list."""
    while timestamps and now - timestamps[0] >= window_ms:
        timestamps.pop(0)
