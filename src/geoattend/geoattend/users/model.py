from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as resolved by the surrounding application."""

    user_id: int
    role: Role

    @property
    def is_administrator(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    @property
    def is_moderator(self) -> bool:
        return self.role == Role.MODERATOR

    def is_event_creator(self, created_by: int | None) -> bool:
        return created_by is not None and int(created_by) == int(self.user_id)
