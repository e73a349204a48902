# instrument_scheduler/routes/reservations.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from instrument_scheduler import auth, booking, database, models, schemas
from instrument_scheduler.repository import ReservationRepository

router = APIRouter(
    prefix="/api/reservations",
    tags=["Reservations"]
)


# Reservations for one day, visible to every signed-in user
@router.get("", response_model=List[schemas.ReservationResponse])
def list_reservations_for_date(
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    return ReservationRepository(db).by_date(day)


@router.get("/mine", response_model=List[schemas.ReservationResponse])
def list_my_reservations(
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    return ReservationRepository(db).by_user(current_user.id)


@router.post("", response_model=schemas.ReservationResponse)
def create_reservation(
    payload: schemas.ReservationCreate,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    return booking.reserve_times(db, payload.date, payload.start_time, payload.end_time, current_user)


# Reserve a raw slot selection ("10:00", "10:10", ...)
@router.post("/selection", response_model=schemas.ReservationResponse)
def create_reservation_from_selection(
    payload: schemas.SelectionCreate,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    return booking.reserve_selection(db, payload.date, payload.slots, current_user)


# Owner or admin
@router.delete("/{reservation_id}", response_model=schemas.SuccessResponse)
def delete_reservation(
    reservation_id: str,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    booking.cancel_reservation(db, reservation_id, current_user)
    return {"success": True}
