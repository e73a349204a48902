# instrument_scheduler/auth.py
import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from instrument_scheduler import database, models, policy
from instrument_scheduler.config import settings
from instrument_scheduler.repository import UserRepository
from instrument_scheduler.schemas import IdentityClaims

logger = logging.getLogger(__name__)

# Bearer token issued by /api/auth/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# Session token creation
def create_access_token(user_id: str) -> str:
    """
    Creates the JWT the client presents on every later request.
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": user_id, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_identity_token(token: str) -> IdentityClaims:
    """
    Checks the identity provider's signature and extracts the sign-in profile.
    """
    options = {"verify_aud": settings.IDENTITY_TOKEN_AUDIENCE is not None}
    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_TOKEN_SECRET,
            algorithms=[settings.IDENTITY_TOKEN_ALGORITHM],
            audience=settings.IDENTITY_TOKEN_AUDIENCE,
            options=options,
        )
        return IdentityClaims(
            id=payload.get("sub") or "",
            email=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            profile_image_url=payload.get("profile_image_url"),
        )
    except (JWTError, ValidationError) as exc:
        logger.warning("Rejected identity token: %s", exc)
        raise credentials_exception("Invalid identity token")


def sign_in(db: Session, identity: IdentityClaims) -> models.User:
    user, created = UserRepository(db).sync_identity(identity)
    if created:
        logger.info("New user %s (%s) awaiting approval", user.id, user.email)
    return user


# Session token verification and user retrieval
def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(database.get_db)) -> models.User:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception()
    except JWTError:
        raise credentials_exception()

    user = UserRepository(db).get(user_id)
    if user is None:
        raise credentials_exception()
    return user


# Admin-only dependency
def verify_admin_user(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not policy.can_moderate(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to perform this action (Admin Only).",
        )
    return current_user
