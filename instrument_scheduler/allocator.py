# instrument_scheduler/allocator.py
"""
Reservation allocator.

Decides whether a requested range can be granted on a date, given the
reservations already held for that date. Nothing here touches the store: the
caller supplies the existing reservations and persists the result, holding the
date's lock for the whole read-decide-insert sequence.
"""
from datetime import date
from typing import Callable, Iterable, Optional

from instrument_scheduler import models, policy
from instrument_scheduler.errors import Forbidden, NotApproved, NotFound, SlotAlreadyReserved
from instrument_scheduler.slot_grid import TimeRange, validate_range


def display_name(user) -> str:
    if user.first_name and user.last_name:
        return f"{user.first_name} {user.last_name}"
    return user.email or "Unknown"


def reserved_range(reservation) -> TimeRange:
    return TimeRange.parse(reservation.start_time, reservation.end_time)


def find_conflict(day: date, time_range: TimeRange, existing: Iterable) -> Optional[object]:
    for reservation in existing:
        if reservation.date != day:
            continue
        if time_range.overlaps(reserved_range(reservation)):
            return reservation
    return None


def reserve(day: date, time_range: TimeRange, requester, existing: Iterable) -> models.Reservation:
    if not policy.can_create(requester):
        raise NotApproved()

    validate_range(time_range)

    conflict = find_conflict(day, time_range, existing)
    if conflict is not None:
        raise SlotAlreadyReserved()

    start_time, end_time = time_range.labels()
    return models.Reservation(
        id=models.new_id(),
        user_id=requester.id,
        user_name=display_name(requester),
        date=day,
        start_time=start_time,
        end_time=end_time,
        created_at=models.utcnow(),
    )


def cancel(reservation_id: str, requester, lookup: Callable[[str], Optional[object]]):
    """Returns the reservation the requester may delete, or raises NotFound / Forbidden."""
    reservation = lookup(reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found")
    if not policy.can_cancel(requester, reservation):
        raise Forbidden("Not authorized to delete this reservation")
    return reservation
