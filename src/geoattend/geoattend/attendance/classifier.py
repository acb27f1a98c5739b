from __future__ import annotations

from typing import Optional

from ..core.enums import VerificationStatus
from .factory import ProximityStrategyFactory
from .strategies.base import StatusDecision
from .strategies.combined_strategy import CombinedStrategy
from .strategies.single_strategy import SingleSidedStrategy


class ProximityClassifier:
    """Maps venue distances to a trust tier. Pure and stateless."""

    def __init__(self, factory: Optional[ProximityStrategyFactory] = None):
        self._factory = factory or ProximityStrategyFactory()

    def classify(self, check_in_distance: float, check_out_distance: Optional[float] = None) -> StatusDecision:
        strategy = self._factory.for_distances(check_out_distance=check_out_distance)
        return strategy.decide(check_in_distance=check_in_distance, check_out_distance=check_out_distance)

    def classify_single(self, distance: float) -> VerificationStatus:
        return SingleSidedStrategy().decide(check_in_distance=distance).status

    def classify_combined(self, distance_in: float, distance_out: float) -> VerificationStatus:
        return CombinedStrategy().decide(check_in_distance=distance_in, check_out_distance=distance_out).status


_default = ProximityClassifier()


def classify_single(distance: float) -> VerificationStatus:
    return _default.classify_single(distance)


def classify_combined(distance_in: float, distance_out: float) -> VerificationStatus:
    return _default.classify_combined(distance_in, distance_out)
