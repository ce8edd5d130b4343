"""Backoff Policy — wait durations and stop ceilings for repeated calls.

Invariants:
    - next_delay(attempt) = min(max_delay, base_delay * multiplier ** attempt), attempt >= 0
    - Without jitter the sequence is non-decreasing and deterministic
    - Jitter only through an explicit random.Random passed at construction
    - exhausted() is the single stop rule: attempt ceiling and/or elapsed-time ceiling

Design Decisions:
    - Frozen dataclass: read-only configuration, safe to share across concurrent calls
    - Seconds as floats: feeds asyncio.sleep directly; settings convert from ms once
    - Same type serves RPC retries and poll cadence; callers hold two independent instances
"""

import random
from dataclasses import dataclass, field


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with a cap and optional attempt/elapsed ceilings."""

    base_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    max_attempts: int | None = 10
    max_elapsed: float | None = None
    jitter: float = 0.0
    rng: random.Random | None = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not 0 <= self.jitter < 1:
            raise ValueError("jitter must be in [0, 1)")
        if self.jitter and self.rng is None:
            raise ValueError("jitter requires an explicit rng")

    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the (attempt + 1)-th retry."""
        if attempt < 0:
            raise ValueError("attempt must be >= 0")
        try:
            delay = self.base_delay * (self.multiplier ** attempt)
        except OverflowError:
            delay = self.max_delay
        delay = min(self.max_delay, delay)
        if self.jitter:
            delay *= self.rng.uniform(1 - self.jitter, 1 + self.jitter)  # nosec B311
        return delay

    def exhausted(self, attempts: int, elapsed: float = 0.0) -> bool:
        """True once `attempts` invocations or `elapsed` seconds reach a ceiling."""
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        if self.max_elapsed is not None and elapsed >= self.max_elapsed:
            return True
        return False

    @classmethod
    def from_ms(
        cls,
        base_delay_ms: int,
        max_delay_ms: int,
        *,
        max_attempts: int | None = None,
        max_elapsed: float | None = None,
        jitter: float = 0.0,
        rng: random.Random | None = None,
    ) -> "BackoffPolicy":
        return cls(
            base_delay=base_delay_ms / 1000,
            max_delay=max_delay_ms / 1000,
            max_attempts=max_attempts,
            max_elapsed=max_elapsed,
            jitter=jitter,
            rng=rng,
        )
