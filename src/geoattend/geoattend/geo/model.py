from __future__ import annotations

from dataclasses import dataclass

from ..common.validators import require_number
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Coordinate:
    """A (latitude, longitude) pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValidationError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValidationError(f"Longitude out of range: {self.longitude}")

    @classmethod
    def parse(cls, latitude: object, longitude: object) -> "Coordinate":
        """Build from untrusted input (form fields, JSON)."""
        return cls(
            latitude=require_number(latitude, "Latitude"),
            longitude=require_number(longitude, "Longitude"),
        )


@dataclass(frozen=True)
class Venue:
    """Expected location of an event. Immutable once the event exists."""

    event_id: int
    coordinate: Coordinate
    name: str = ""
