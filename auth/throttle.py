"""
auth/throttle.py -- Brute-force throttling for the auth endpoints.

Each bucket (one per source address, one per submitted username) is a
counter in a `limits` storage -- the same in-memory backend slowapi uses for
api/limiter.py. storage.incr() is lock-protected per key, so concurrent
requests cannot undercount. The counter's window starts at its first hit and
expires window_seconds later, at which point both stages reset together.

Per-bucket state machine, evaluated on every hit:

    count <= delay_after                 NORMAL   -- proceed
    delay_after < count <= block_after   WARNED   -- sleep delay_seconds, proceed
    count > block_after                  BLOCKED  -- sleep delay_seconds, reject (429)

With the defaults (3 / 5 / 500ms / 60s): the 4th attempt inside a minute is
slowed down, the 6th is refused with a Retry-After hint.

The guard only decides; the caller performs the delay (see
auth/dependencies.py, which awaits asyncio.sleep so no worker thread is
parked). Counts live in process memory and vanish on restart. Running several
instances needs a shared storage URI (e.g. redis://) -- the guard takes any
limits storage.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import IntEnum

from limits.storage import MemoryStorage, Storage

from core.errors import RateLimitError

logger = logging.getLogger("securepay.throttle")

_KEY_PREFIX = "throttle"


class ThrottleState(IntEnum):
    """Ordered by severity so the worst of several buckets is max()."""

    NORMAL = 0
    WARNED = 1
    BLOCKED = 2


@dataclass(frozen=True)
class ThrottleDecision:
    state: ThrottleState
    delay_seconds: float = 0.0
    retry_after: int = 0

    @property
    def blocked(self) -> bool:
        return self.state is ThrottleState.BLOCKED

    def raise_for_state(self) -> None:
        """Raise RateLimitError when the decision is BLOCKED."""
        if self.blocked:
            raise RateLimitError(retry_after=self.retry_after)


class ThrottleGuard:
    """Counts attempts per bucket and classifies them as NORMAL/WARNED/BLOCKED.

    Usage:
        guard = ThrottleGuard()
        decision = guard.hit("ip:10.0.0.1", "user:alice_01")
        time.sleep(decision.delay_seconds)
        decision.raise_for_state()
    """

    def __init__(
        self,
        storage: Storage | None = None,
        window_seconds: int = 60,
        delay_after: int = 3,
        delay_seconds: float = 0.5,
        block_after: int = 5,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive.")
        if block_after < delay_after:
            raise ValueError("block_after must not be lower than delay_after.")
        self.storage = storage if storage is not None else MemoryStorage()
        self.window_seconds = window_seconds
        self.delay_after = delay_after
        self.delay_seconds = delay_seconds
        self.block_after = block_after

    def _classify(self, count: int) -> ThrottleState:
        if count > self.block_after:
            return ThrottleState.BLOCKED
        if count > self.delay_after:
            return ThrottleState.WARNED
        return ThrottleState.NORMAL

    def _retry_after(self, key: str) -> int:
        remaining = self.storage.get_expiry(key) - time.time()
        return max(1, math.ceil(remaining))

    def hit(self, *buckets: str) -> ThrottleDecision:
        """Count one attempt against every bucket and return the worst outcome.

        Empty bucket names are skipped. With no buckets at all the decision
        is NORMAL.
        """
        worst = ThrottleState.NORMAL
        retry_after = 0
        for bucket in buckets:
            if not bucket:
                continue
            key = f"{_KEY_PREFIX}/{bucket}"
            count = self.storage.incr(key, self.window_seconds)
            state = self._classify(count)
            if state is ThrottleState.BLOCKED:
                retry_after = max(retry_after, self._retry_after(key))
                logger.warning("Throttle bucket %s blocked (%d attempts in window)", bucket, count)
            worst = max(worst, state)

        if worst is ThrottleState.NORMAL:
            return ThrottleDecision(ThrottleState.NORMAL)
        return ThrottleDecision(worst, delay_seconds=self.delay_seconds, retry_after=retry_after)

    def reset(self) -> None:
        """Drop every bucket. Used by tests and by operators after an incident."""
        self.storage.reset()
