# instrument_scheduler/moderation.py
# Admin-only operations. Callers gate on policy.can_moderate before reaching here.
import logging
from typing import List

from sqlalchemy.orm import Session

from instrument_scheduler import models
from instrument_scheduler.errors import NotFound
from instrument_scheduler.repository import ReservationRepository, UserRepository

logger = logging.getLogger(__name__)


def approve(db: Session, user_id: str) -> models.User:
    user = UserRepository(db).approve(user_id)
    if user is None:
        raise NotFound("User not found")
    logger.info("User %s approved", user_id)
    return user


def reject(db: Session, user_id: str) -> None:
    if UserRepository(db).reject(user_id):
        logger.info("User %s rejected and removed", user_id)


def list_pending(db: Session) -> List[models.User]:
    return UserRepository(db).list_pending()


def list_all(db: Session) -> List[models.User]:
    return UserRepository(db).list_all()


def list_all_reservations(db: Session) -> List[models.Reservation]:
    return ReservationRepository(db).list_all()
