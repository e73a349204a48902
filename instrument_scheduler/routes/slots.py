# instrument_scheduler/routes/slots.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from instrument_scheduler import auth, database, models, schemas
from instrument_scheduler.allocator import reserved_range
from instrument_scheduler.repository import ReservationRepository
from instrument_scheduler.slot_grid import slot_labels, slots_for

router = APIRouter(
    prefix="/api/slots",
    tags=["Slots"]
)


# Full 10-minute grid for a day with the holder of each taken slot
@router.get("", response_model=List[schemas.SlotResponse])
def day_grid(
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    grid = [{"time": label} for label in slot_labels()]
    for reservation in ReservationRepository(db).by_date(day):
        for slot in slots_for(reserved_range(reservation)):
            grid[slot].update(
                reservation_id=reservation.id,
                user_id=reservation.user_id,
                user_name=reservation.user_name,
            )
    return grid
