"""Fixed-window request counters kept in process memory.

Counters are best-effort: they reset on restart and are not shared between
workers. Expired windows are swept at most once per ``sweep_interval``
from inside ``check``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


RATE_LIMITS: dict[str, RateLimitRule] = {
    # per phone
    "otp_send": RateLimitRule(max_requests=3, window_seconds=5 * 60),
    "otp_verify": RateLimitRule(max_requests=5, window_seconds=5 * 60),
    # per client address
    "login": RateLimitRule(max_requests=10, window_seconds=15 * 60),
    "register": RateLimitRule(max_requests=5, window_seconds=60 * 60),
    # per user
    "telegram_link": RateLimitRule(max_requests=10, window_seconds=60 * 60),
    # per email
    "link_phone": RateLimitRule(max_requests=3, window_seconds=60 * 60),
}


class RateLimiter:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        store: Optional[dict[str, _Window]] = None,
        sweep_interval: float = 60.0,
    ) -> None:
        self.clock = clock
        self.store: dict[str, _Window] = store if store is not None else {}
        self.sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def check(self, key: str, rule: RateLimitRule) -> RateLimitResult:
        """Count one request against ``key`` and report whether it may proceed."""
        now = self.clock()
        if now >= self._next_sweep:
            self.sweep()
            self._next_sweep = now + self.sweep_interval
        window = self.store.get(key)
        if window is None or window.reset_at < now:
            window = _Window(count=1, reset_at=now + rule.window_seconds)
            self.store[key] = window
            return RateLimitResult(True, rule.max_requests - 1, window.reset_at)

        if window.count >= rule.max_requests:
            return RateLimitResult(False, 0, window.reset_at)

        window.count += 1
        return RateLimitResult(True, rule.max_requests - window.count, window.reset_at)

    def sweep(self) -> int:
        """Drop expired windows, returning how many were removed."""
        now = self.clock()
        expired = [key for key, window in self.store.items() if window.reset_at < now]
        for key in expired:
            del self.store[key]
        return len(expired)

    def reset(self) -> None:
        self.store.clear()


_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _limiter
