from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional

from ..common.datetime_utils import Clock, now_local
from ..common.logging import audit, get_logger
from ..core.enums import RateLimitPolicy
from ..core.exceptions import RateLimitExceeded, ValidationError
from .limiter import RateLimiter
from .model import RateLimitDecision
from .store import CounterStoreError

logger = get_logger(__name__)


class RateLimitService:
    """Boundary guard for login and QR validation.

    enabled=False skips every check and must be set explicitly. When the
    counter store fails, requests are denied unless fail_open=True.
    """

    def __init__(
        self,
        limiters: Mapping[RateLimitPolicy, RateLimiter],
        *,
        enabled: bool,
        fail_open: bool = False,
        clock: Clock = now_local,
    ):
        self._limiters = dict(limiters)
        self._enabled = bool(enabled)
        self._fail_open = bool(fail_open)
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _limiter(self, policy: RateLimitPolicy) -> RateLimiter:
        try:
            return self._limiters[RateLimitPolicy(policy)]
        except (KeyError, ValueError):
            raise ValueError(f"No limiter configured for policy {policy!r}")

    @staticmethod
    def normalize(identifier: Optional[str], policy: RateLimitPolicy) -> str:
        value = (identifier or "").strip()
        if not value:
            raise ValidationError("Rate limit identifier is required")
        if RateLimitPolicy(policy) == RateLimitPolicy.AUTH:
            return value.lower()
        return value

    def check(self, identifier: Optional[str], policy: RateLimitPolicy, *, now: datetime | None = None) -> RateLimitDecision:
        now = now or self._clock()
        limiter = self._limiter(policy)
        if not self._enabled:
            return RateLimitDecision(allowed=True, remaining=limiter.limit, reset_at=now)

        key = self.normalize(identifier, policy)
        try:
            decision = limiter.check(key, now=now)
        except CounterStoreError:
            logger.warning(
                "Rate limit store unavailable for %s; failing %s",
                RateLimitPolicy(policy).value,
                "open" if self._fail_open else "closed",
                exc_info=True,
            )
            if self._fail_open:
                return RateLimitDecision(allowed=True, remaining=limiter.limit, reset_at=now)
            return RateLimitDecision(allowed=False, remaining=0, reset_at=now)

        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s:%s", RateLimitPolicy(policy).value, key)
            audit("RATE_LIMIT_DENIED", policy=RateLimitPolicy(policy).value, identifier=key, reset_at=decision.reset_at)
        return decision

    def enforce(self, identifier: Optional[str], policy: RateLimitPolicy, *, now: datetime | None = None) -> RateLimitDecision:
        decision = self.check(identifier, policy, now=now)
        if not decision.allowed:
            raise RateLimitExceeded(
                "Too many attempts. Please try again later.",
                remaining=decision.remaining,
                reset_at=decision.reset_at,
            )
        return decision

    def reset(self, identifier: Optional[str], policy: RateLimitPolicy, *, now: datetime | None = None) -> None:
        """Forget an identifier's attempts, e.g. after a successful login."""

        now = now or self._clock()
        if not self._enabled:
            return
        self._limiter(policy).reset(self.normalize(identifier, policy), now=now)
