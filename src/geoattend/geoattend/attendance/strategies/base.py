from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import VerificationStatus


@dataclass(frozen=True)
class StatusDecision:
    status: VerificationStatus
    note: Optional[str] = None


class ProximityStrategy(ABC):
    """Strategy Pattern: encapsulate how distances map to a verification status."""

    @abstractmethod
    def decide(self, *, check_in_distance: float, check_out_distance: Optional[float]) -> StatusDecision:
        raise NotImplementedError
