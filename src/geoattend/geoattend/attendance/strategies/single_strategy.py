from __future__ import annotations

from typing import Optional

from ...core.constants import APPROVE_MAX_DISTANCE_M, OUTER_CUTOFF_DISTANCE_M, PENDING_MAX_DISTANCE_M
from ...core.enums import VerificationStatus
from .base import ProximityStrategy, StatusDecision


class SingleSidedStrategy(ProximityStrategy):
    """Only a check-in exists: three tiers on the check-in distance."""

    def decide(self, *, check_in_distance: float, check_out_distance: Optional[float] = None) -> StatusDecision:
        d = check_in_distance
        if d <= APPROVE_MAX_DISTANCE_M:
            return StatusDecision(
                status=VerificationStatus.APPROVED,
                note=f"Auto-approved: within {APPROVE_MAX_DISTANCE_M:g}m of venue ({d:.1f}m)",
            )
        if d <= PENDING_MAX_DISTANCE_M:
            return StatusDecision(
                status=VerificationStatus.PENDING,
                note=f"Pending review: {d:.1f}m from venue ({APPROVE_MAX_DISTANCE_M:g}-{PENDING_MAX_DISTANCE_M:g}m range)",
            )
        if d <= OUTER_CUTOFF_DISTANCE_M:
            return StatusDecision(
                status=VerificationStatus.REJECTED,
                note=f"Auto-rejected: {d:.1f}m from venue (exceeds {PENDING_MAX_DISTANCE_M:g}m threshold)",
            )
        return StatusDecision(
            status=VerificationStatus.REJECTED,
            note=f"Auto-rejected: {d:.1f}m from venue (beyond {OUTER_CUTOFF_DISTANCE_M:g}m cutoff)",
        )
