# instrument_scheduler/routes/admin.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from instrument_scheduler import auth, database, moderation, schemas

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(auth.verify_admin_user)]
)


@router.get("/users", response_model=List[schemas.UserResponse])
def list_users(db: Session = Depends(database.get_db)):
    return moderation.list_all(db)


@router.get("/users/pending", response_model=List[schemas.UserResponse])
def list_pending_users(db: Session = Depends(database.get_db)):
    return moderation.list_pending(db)


@router.post("/users/{user_id}/approve", response_model=schemas.UserResponse)
def approve_user(user_id: str, db: Session = Depends(database.get_db)):
    return moderation.approve(db, user_id)


# Destructive: the user record and its reservations are removed
@router.post("/users/{user_id}/reject", response_model=schemas.SuccessResponse)
def reject_user(user_id: str, db: Session = Depends(database.get_db)):
    moderation.reject(db, user_id)
    return {"success": True}


@router.get("/reservations", response_model=List[schemas.ReservationResponse])
def list_all_reservations(db: Session = Depends(database.get_db)):
    return moderation.list_all_reservations(db)
