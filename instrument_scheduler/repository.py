# instrument_scheduler/repository.py
import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from instrument_scheduler import models
from instrument_scheduler.database import begin_write

logger = logging.getLogger(__name__)


class ReservationRepository:
    def __init__(self, db: Session):
        self.db = db

    def by_date(self, day: date) -> List[models.Reservation]:
        return (
            self.db.query(models.Reservation)
            .filter(models.Reservation.date == day)
            .order_by(models.Reservation.start_time)
            .all()
        )

    def by_user(self, user_id: str) -> List[models.Reservation]:
        return (
            self.db.query(models.Reservation)
            .filter(models.Reservation.user_id == user_id)
            .order_by(models.Reservation.date.desc(), models.Reservation.start_time)
            .all()
        )

    def get(self, reservation_id: str) -> Optional[models.Reservation]:
        return self.db.query(models.Reservation).filter(models.Reservation.id == reservation_id).first()

    def list_all(self) -> List[models.Reservation]:
        return (
            self.db.query(models.Reservation)
            .order_by(
                models.Reservation.date.desc(),
                models.Reservation.start_time,
                models.Reservation.created_at.desc(),
            )
            .all()
        )

    def insert(self, reservation: models.Reservation) -> models.Reservation:
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def delete(self, reservation_id: str) -> bool:
        begin_write(self.db)
        removed = (
            self.db.query(models.Reservation)
            .filter(models.Reservation.id == reservation_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed > 0

    @contextmanager
    def with_date_lock(self, day: date) -> Iterator[List[models.Reservation]]:
        """
        Serializes writers of one date.

        Opens a write transaction, takes the date's lock row, yields the
        reservations already held for that date and commits when the block
        exits cleanly. Any error rolls the whole unit back, lock included.
        """
        try:
            begin_write(self.db)
            self._lock_day(day)
            yield self.by_date(day)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _bump_day(self, day: date) -> int:
        return (
            self.db.query(models.ReservationDay)
            .filter(models.ReservationDay.date == day)
            .update({models.ReservationDay.version: models.ReservationDay.version + 1}, synchronize_session=False)
        )

    def _lock_day(self, day: date) -> None:
        if self._bump_day(day):
            return
        try:
            with self.db.begin_nested():
                self.db.add(models.ReservationDay(date=day, version=1))
        except IntegrityError:
            # Another writer created the row first; queue behind it.
            logger.debug("Lock row for %s created concurrently, waiting on it", day)
            self._bump_day(day)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def sync_identity(self, identity) -> Tuple[models.User, bool]:
        """
        Records a sign-in from the identity provider.

        A new subject becomes an unapproved, non-admin user. A known subject only
        has its profile fields refreshed; approval and admin flags are untouched.
        Returns the user and whether it was created.
        """
        begin_write(self.db)
        user = self.get(identity.id)
        created = user is None
        if created:
            user = models.User(
                id=identity.id,
                email=identity.email,
                first_name=identity.first_name,
                last_name=identity.last_name,
                profile_image_url=identity.profile_image_url,
                is_approved=False,
                is_admin=False,
            )
            self.db.add(user)
        else:
            user.email = identity.email
            user.first_name = identity.first_name
            user.last_name = identity.last_name
            user.profile_image_url = identity.profile_image_url
            user.updated_at = models.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user, created

    def list_all(self) -> List[models.User]:
        return self.db.query(models.User).order_by(models.User.created_at.desc()).all()

    def list_pending(self) -> List[models.User]:
        return (
            self.db.query(models.User)
            .filter(models.User.is_approved.is_(False))
            .order_by(models.User.created_at.desc())
            .all()
        )

    def approve(self, user_id: str) -> Optional[models.User]:
        begin_write(self.db)
        user = self.get(user_id)
        if user is not None and not user.is_approved:
            user.is_approved = True
            user.updated_at = models.utcnow()
        self.db.commit()
        if user is not None:
            self.db.refresh(user)
        return user

    def reject(self, user_id: str) -> bool:
        begin_write(self.db)
        user = self.get(user_id)
        if user is not None:
            self.db.delete(user)
        self.db.commit()
        return user is not None
