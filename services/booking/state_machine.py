"""
services/booking/state_machine.py
Booking lifecycle as an explicit transition table.

    PENDING ──► CONFIRMED ──► COMPLETED
       │            │
       └──► CANCELLED ◄┘

COMPLETED and CANCELLED are terminal.
"""

from typing import Dict, FrozenSet

from shared.models.models import BookingStatus

# Targets a client may request through the status endpoint
REQUESTABLE_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
})

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


class InvalidTransition(ValueError):
    def __init__(self, current: BookingStatus, target: BookingStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot change booking from {current.value} to {target.value}."
        )


def parse_target(value: str) -> BookingStatus:
    """Map a requested status string to a requestable BookingStatus or raise ValueError."""
    try:
        target = BookingStatus(value)
    except ValueError:
        target = None
    if target not in REQUESTABLE_STATUSES:
        raise ValueError("Invalid status. Use CONFIRMED, COMPLETED, or CANCELLED.")
    return target


def check_transition(current: BookingStatus, target: BookingStatus, enforce: bool = True) -> None:
    """
    Raise InvalidTransition if ``target`` is not reachable from ``current``.
    With enforce=False any requestable target is accepted from any state.
    """
    if target not in REQUESTABLE_STATUSES:
        raise InvalidTransition(current, target)
    if enforce and target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current, target)
