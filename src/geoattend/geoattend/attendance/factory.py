from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .strategies.base import ProximityStrategy
from .strategies.combined_strategy import CombinedStrategy
from .strategies.single_strategy import SingleSidedStrategy


@dataclass
class ProximityStrategyFactory:
    """Factory Pattern: choose the classification strategy from the evidence available."""

    def for_distances(self, *, check_out_distance: Optional[float]) -> ProximityStrategy:
        if check_out_distance is None:
            return SingleSidedStrategy()
        return CombinedStrategy()
