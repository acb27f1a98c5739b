from __future__ import annotations

from typing import Protocol, Tuple


class CounterStoreError(Exception):
    """The shared counter backend failed or timed out."""


def refill_bucket(
    tokens: int,
    refilled_at_ms: int,
    *,
    capacity: int,
    refill_tokens: int,
    refill_interval_ms: int,
    now_ms: int,
) -> Tuple[int, int]:
    """Add refill_tokens for every whole interval elapsed since refilled_at_ms, capped at capacity."""

    intervals = max(0, (now_ms - refilled_at_ms) // refill_interval_ms)
    if intervals == 0:
        return tokens, refilled_at_ms
    return min(capacity, tokens + intervals * refill_tokens), refilled_at_ms + intervals * refill_interval_ms


class CounterStore(Protocol):
    """Shared token buckets. Implementations raise CounterStoreError on backend failure."""

    def debit_token(
        self,
        key: str,
        *,
        capacity: int,
        refill_tokens: int,
        refill_interval_ms: int,
        now_ms: int,
    ) -> Tuple[bool, int, int]:
        """Atomically refill then take one token. Returns (allowed, remaining, reset_ms)."""

        raise NotImplementedError

    def delete(self, *keys: str) -> None:
        raise NotImplementedError
