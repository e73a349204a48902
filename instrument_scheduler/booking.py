# instrument_scheduler/booking.py
import logging
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from instrument_scheduler import allocator, models, policy
from instrument_scheduler.errors import NotApproved, NotFound
from instrument_scheduler.repository import ReservationRepository
from instrument_scheduler.slot_grid import TimeRange, range_from_selection, slots_from_labels

logger = logging.getLogger(__name__)


def create_reservation(db: Session, day: date, time_range: TimeRange, requester: models.User) -> models.Reservation:
    repo = ReservationRepository(db)
    with repo.with_date_lock(day) as existing:
        reservation = repo.insert(allocator.reserve(day, time_range, requester, existing))
    db.refresh(reservation)
    logger.info(
        "Reservation %s created by %s on %s %s-%s",
        reservation.id, requester.id, day, reservation.start_time, reservation.end_time,
    )
    return reservation


# Approval is checked before the raw times are even parsed
def reserve_times(db: Session, day: date, start_time: str, end_time: str, requester: models.User) -> models.Reservation:
    if not policy.can_create(requester):
        raise NotApproved()
    time_range = TimeRange.parse(start_time, end_time)
    return create_reservation(db, day, time_range, requester)


def reserve_selection(db: Session, day: date, labels: Iterable[str], requester: models.User) -> models.Reservation:
    if not policy.can_create(requester):
        raise NotApproved()
    time_range = range_from_selection(slots_from_labels(labels))
    return create_reservation(db, day, time_range, requester)


def cancel_reservation(db: Session, reservation_id: str, requester: models.User) -> None:
    repo = ReservationRepository(db)
    allocator.cancel(reservation_id, requester, repo.get)
    if not repo.delete(reservation_id):
        raise NotFound("Reservation not found")
    logger.info("Reservation %s cancelled by %s", reservation_id, requester.id)
