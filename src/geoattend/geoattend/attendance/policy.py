from __future__ import annotations

from ..events.model import Event
from ..users.model import Principal


def can_verify(principal: Principal, event: Event) -> bool:
    """Administrators verify anything; moderators only attendance for events they created."""

    if principal.is_administrator:
        return True
    if principal.is_moderator:
        return principal.is_event_creator(event.created_by)
    return False
