from __future__ import annotations

from typing import Optional

from ...core.constants import APPROVE_MAX_DISTANCE_M, COMBINED_REJECT_DISTANCE_M
from ...core.enums import VerificationStatus
from .base import ProximityStrategy, StatusDecision


class CombinedStrategy(ProximityStrategy):
    """Check-in and check-out both exist: most restrictive wins.

    Approved needs both <= 20m. Rejected triggers when either is >= 80m,
    so exactly 80m rejects here while it is still Pending single-sided.
    """

    def decide(self, *, check_in_distance: float, check_out_distance: Optional[float]) -> StatusDecision:
        if check_out_distance is None:
            raise ValueError("CombinedStrategy needs a check-out distance")

        d_in, d_out = check_in_distance, check_out_distance
        detail = f"check-in {d_in:.1f}m, check-out {d_out:.1f}m"

        if d_in <= APPROVE_MAX_DISTANCE_M and d_out <= APPROVE_MAX_DISTANCE_M:
            return StatusDecision(
                status=VerificationStatus.APPROVED,
                note=f"Auto-approved: both within {APPROVE_MAX_DISTANCE_M:g}m of venue ({detail})",
            )
        if d_in >= COMBINED_REJECT_DISTANCE_M or d_out >= COMBINED_REJECT_DISTANCE_M:
            return StatusDecision(
                status=VerificationStatus.REJECTED,
                note=f"Auto-rejected: at or beyond {COMBINED_REJECT_DISTANCE_M:g}m from venue ({detail})",
            )
        return StatusDecision(status=VerificationStatus.PENDING, note=f"Pending review: {detail}")
