from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from limits import RateLimitItemPerSecond
from limits.errors import StorageError
from limits.storage import Storage
from limits.strategies import SlidingWindowCounterRateLimiter

from ..common.datetime_utils import from_epoch_ms, to_epoch_ms
from .model import RateLimitDecision, SlidingWindowPolicy, TokenBucketPolicy
from .store import CounterStore, CounterStoreError


class RateLimiter(ABC):
    """Strategy for one rate limiting algorithm over shared storage."""

    def __init__(self, *, prefix: str):
        self._prefix = prefix

    @property
    @abstractmethod
    def limit(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def check(self, identifier: str, *, now: datetime) -> RateLimitDecision:
        raise NotImplementedError

    @abstractmethod
    def reset(self, identifier: str, *, now: datetime) -> None:
        raise NotImplementedError


class SlidingWindowLimiter(RateLimiter):
    """N attempts per trailing window, on the ``limits`` sliding window counter.

    The previous fixed window is weighted by how much of it still overlaps the
    trailing window. A denied attempt is not counted. ``limits`` reads its own
    clock, so ``now`` is ignored here.
    """

    def __init__(self, storage: Storage, policy: SlidingWindowPolicy, *, prefix: str):
        super().__init__(prefix=prefix)
        self._policy = policy
        self._item = RateLimitItemPerSecond(policy.limit, policy.window_seconds, namespace=prefix)
        self._strategy = SlidingWindowCounterRateLimiter(storage)

    @property
    def limit(self) -> int:
        return self._policy.limit

    def check(self, identifier: str, *, now: datetime) -> RateLimitDecision:
        try:
            allowed = self._strategy.hit(self._item, identifier)
            stats = self._strategy.get_window_stats(self._item, identifier)
        except StorageError as e:
            raise CounterStoreError(f"sliding window failed for {self._prefix}:{identifier}") from e
        return RateLimitDecision(
            allowed=allowed,
            remaining=max(0, int(stats.remaining)),
            reset_at=from_epoch_ms(int(stats.reset_time * 1000)),
        )

    def reset(self, identifier: str, *, now: datetime) -> None:
        try:
            self._strategy.clear(self._item, identifier)
        except StorageError as e:
            raise CounterStoreError(f"sliding window reset failed for {self._prefix}:{identifier}") from e


class TokenBucketLimiter(RateLimiter):
    """Bursts up to capacity; refill_tokens come back every refill interval."""

    def __init__(self, store: CounterStore, policy: TokenBucketPolicy, *, prefix: str):
        super().__init__(prefix=prefix)
        self._store = store
        self._policy = policy

    @property
    def limit(self) -> int:
        return self._policy.capacity

    def _key(self, identifier: str) -> str:
        return f"{self._prefix}:{identifier}"

    def check(self, identifier: str, *, now: datetime) -> RateLimitDecision:
        allowed, remaining, reset_ms = self._store.debit_token(
            self._key(identifier),
            capacity=self._policy.capacity,
            refill_tokens=self._policy.refill_tokens,
            refill_interval_ms=self._policy.refill_seconds * 1000,
            now_ms=to_epoch_ms(now),
        )
        return RateLimitDecision(allowed=allowed, remaining=remaining, reset_at=from_epoch_ms(reset_ms))

    def reset(self, identifier: str, *, now: datetime) -> None:
        self._store.delete(self._key(identifier))
