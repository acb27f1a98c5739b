import pytest

from src.geoattend.geoattend.attendance.classifier import ProximityClassifier, classify_combined, classify_single
from src.geoattend.geoattend.attendance.factory import ProximityStrategyFactory
from src.geoattend.geoattend.attendance.strategies.combined_strategy import CombinedStrategy
from src.geoattend.geoattend.attendance.strategies.single_strategy import SingleSidedStrategy
from src.geoattend.geoattend.core.enums import VerificationStatus as S


@pytest.mark.parametrize(
    "distance,expected",
    [
        (0.0, S.APPROVED),
        (20.0, S.APPROVED),
        (20.1, S.PENDING),
        (80.0, S.PENDING),
        (80.1, S.REJECTED),
        (100.0, S.REJECTED),
        (5000.0, S.REJECTED),
    ],
)
def test_classify_single_tiers(distance, expected):
    assert classify_single(distance) == expected


@pytest.mark.parametrize(
    "d_in,d_out,expected",
    [
        (15, 18, S.APPROVED),
        (20, 20, S.APPROVED),
        (15, 85, S.REJECTED),
        (15, 50, S.PENDING),
        (79.9, 79.9, S.PENDING),
        (80, 10, S.REJECTED),
        (10, 80, S.REJECTED),
        (20.1, 5, S.PENDING),
    ],
)
def test_classify_combined_most_restrictive_wins(d_in, d_out, expected):
    assert classify_combined(d_in, d_out) == expected


def test_exactly_80m_is_pending_single_but_rejected_combined():
    assert classify_single(80.0) == S.PENDING
    assert classify_combined(80.0, 0.0) == S.REJECTED


def test_factory_picks_strategy_from_available_evidence():
    factory = ProximityStrategyFactory()
    assert isinstance(factory.for_distances(check_out_distance=None), SingleSidedStrategy)
    assert isinstance(factory.for_distances(check_out_distance=12.0), CombinedStrategy)


def test_decision_carries_reason():
    decision = ProximityClassifier().classify(12.3)
    assert decision.status == S.APPROVED
    assert "12.3m" in decision.note

    decision = ProximityClassifier().classify(12.3, 150.0)
    assert decision.status == S.REJECTED
    assert decision.note.startswith("Auto-rejected")


def test_combined_strategy_requires_check_out():
    with pytest.raises(ValueError):
        CombinedStrategy().decide(check_in_distance=1.0, check_out_distance=None)
