# instrument_scheduler/schemas.py
import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

HHMM = r"^[0-9]{2}:[0-9]{2}$"
SlotLabel = Annotated[str, StringConstraints(pattern=HHMM)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ReservationCreate(CamelModel):
    date: datetime.date
    start_time: str = Field(pattern=HHMM)
    end_time: str = Field(pattern=HHMM)


class SelectionCreate(CamelModel):
    date: datetime.date
    slots: List[SlotLabel] = Field(min_length=1)


class ReservationResponse(CamelModel):
    id: str
    user_id: str
    user_name: str
    date: datetime.date
    start_time: str
    end_time: str
    created_at: datetime.datetime


class SlotResponse(CamelModel):
    time: str
    reservation_id: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_approved: bool
    is_admin: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class IdentityClaims(BaseModel):
    """Profile handed over by the identity provider on sign-in."""
    id: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class LoginRequest(BaseModel):
    id_token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True
