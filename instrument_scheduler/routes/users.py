# instrument_scheduler/routes/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from instrument_scheduler import auth, database, models, schemas

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"]
)


# Exchange an identity-provider token for a session token
@router.post("/login", response_model=schemas.TokenResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(database.get_db)):
    identity = auth.verify_identity_token(payload.id_token)
    user = auth.sign_in(db, identity)
    return {
        "access_token": auth.create_access_token(user.id),
        "token_type": "bearer",
        "user": user,
    }


@router.get("/user", response_model=schemas.UserResponse)
def read_current_user(current_user: models.User = Depends(auth.get_current_user)):
    return current_user
