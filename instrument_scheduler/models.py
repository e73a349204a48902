# instrument_scheduler/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Date, Integer
from sqlalchemy.orm import relationship

from instrument_scheduler.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, index=True)  # external identity subject
    email = Column(String, unique=True, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    reservations = relationship(
        "Reservation", back_populates="user", cascade="all, delete-orphan"
    )


class Reservation(Base):
    __tablename__ = "reservations"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)  # "HH:MM"
    user_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="reservations")


class ReservationDay(Base):
    """Lock row for a date partition; writers bump `version` before touching that date."""
    __tablename__ = "reservation_days"
    date = Column(Date, primary_key=True)
    version = Column(Integer, default=0, nullable=False)
