from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from intervals import to_utc
from occupancy import UsersInRooms
from slots import TimeSlot

# Naive timestamps are read as UTC; aware ones are converted to UTC
UTCDatetime = Annotated[datetime, AfterValidator(to_utc)]


# --------------------------------------
# Users

class UserRegister(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    password: str = Field(min_length=1)
    post_code: Optional[str] = None
    country: Optional[str] = None
    position: Optional[str] = None


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1)
    post_code: Optional[str] = None
    country: Optional[str] = None
    position: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class TokenRefresh(BaseModel):
    jwt: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    post_code: Optional[str] = None
    country: Optional[str] = None
    position: Optional[str] = None


class UserWithSpaces(UserRead):
    space_ids: List[int] = []


# --------------------------------------
# Spaces

class SpaceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    user_ids: List[int] = []


class SpaceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    user_ids: Optional[List[int]] = None


class SpaceJoin(BaseModel):
    invite_code: str


class SpaceRead(BaseModel):
    id: int
    admin_id: int
    user_ids: List[int]
    name: str
    description: Optional[str] = None
    invite_code: str
    capacity: Optional[int] = None


# --------------------------------------
# Rooms

class RoomCreate(BaseModel):
    space_id: int
    name: str
    description: Optional[str] = None
    capacity: int = Field(ge=0)


class RoomUpdate(BaseModel):
    space_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


class RoomRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    space_id: int
    name: str
    description: Optional[str] = None
    capacity: int


# --------------------------------------
# Bookings

class BookingCreate(BaseModel):
    room_id: int
    primary_user_id: Optional[int] = None
    invited_user_ids: List[int] = []
    title: str
    description: str
    start_time: UTCDatetime
    end_time: UTCDatetime


class BookingUpdate(BaseModel):
    room_id: Optional[int] = None
    primary_user_id: Optional[int] = None
    invited_user_ids: Optional[List[int]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[UTCDatetime] = None
    end_time: Optional[UTCDatetime] = None


class BookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: int
    primary_user_id: int
    invited_user_ids: List[int]
    title: str
    description: str
    start_time: datetime
    end_time: datetime


class BookedInterval(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_time: datetime
    end_time: datetime


class RoomBookings(BaseModel):
    room_id: int
    bookings: List[BookedInterval]


class RoomTimeSlots(BaseModel):
    room_id: int
    time_slots: List[TimeSlot]


class AvailabilityResponse(BaseModel):
    availableTimeSlots: List[RoomTimeSlots]
    mostUsedRoom: Optional[int]
    numberOfRoomsInUse: int
    numberOfUsersInRooms: UsersInRooms
