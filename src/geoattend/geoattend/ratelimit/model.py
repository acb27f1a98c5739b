from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one check. Never persisted."""

    allowed: bool
    remaining: int
    reset_at: datetime


@dataclass(frozen=True)
class SlidingWindowPolicy:
    limit: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.limit <= 0 or self.window_seconds <= 0:
            raise ValueError("limit and window_seconds must be positive")


@dataclass(frozen=True)
class TokenBucketPolicy:
    capacity: int
    refill_tokens: int
    refill_seconds: int

    def __post_init__(self) -> None:
        if self.capacity <= 0 or self.refill_tokens <= 0 or self.refill_seconds <= 0:
            raise ValueError("capacity, refill_tokens and refill_seconds must be positive")
