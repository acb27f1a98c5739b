from __future__ import annotations

from typing import Tuple

import redis

from ..common.logging import get_logger
from .store import CounterStore, CounterStoreError, refill_bucket

logger = get_logger(__name__)

_MAX_WATCH_RETRIES = 16


class RedisCounterStore(CounterStore):
    """Token bucket state on Redis, shared by every instance of the service."""

    def __init__(self, client: "redis.Redis"):
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 2.0) -> "RedisCounterStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def debit_token(
        self,
        key: str,
        *,
        capacity: int,
        refill_tokens: int,
        refill_interval_ms: int,
        now_ms: int,
    ) -> Tuple[bool, int, int]:
        # Long enough for an idle bucket to refill completely.
        ttl_ms = refill_interval_ms * (capacity // refill_tokens + 1)
        try:
            with self._client.pipeline() as pipe:
                for _ in range(_MAX_WATCH_RETRIES):
                    try:
                        pipe.watch(key)
                        state = pipe.hgetall(key)
                        if state:
                            tokens, refilled_at = refill_bucket(
                                int(state["tokens"]),
                                int(state["refilled_at"]),
                                capacity=capacity,
                                refill_tokens=refill_tokens,
                                refill_interval_ms=refill_interval_ms,
                                now_ms=now_ms,
                            )
                        else:
                            tokens, refilled_at = capacity, now_ms

                        allowed = tokens > 0
                        if allowed:
                            tokens -= 1

                        pipe.multi()
                        pipe.hset(key, mapping={"tokens": tokens, "refilled_at": refilled_at})
                        pipe.pexpire(key, ttl_ms)
                        pipe.execute()
                        return allowed, tokens, refilled_at + refill_interval_ms
                    except redis.WatchError:
                        logger.debug("Token bucket %s contended, retrying", key)
                        continue
        except redis.RedisError as e:
            raise CounterStoreError(f"token debit failed for {key}") from e
        raise CounterStoreError(f"token debit for {key} kept losing to concurrent writers")

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self._client.delete(*keys)
        except redis.RedisError as e:
            raise CounterStoreError(f"delete failed for {', '.join(keys)}") from e
