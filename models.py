from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, always hands back aware UTC (SQLite drops tzinfo)."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str = Field(index=True, unique=True)
    password: str  # bcrypt hash, never serialized
    post_code: Optional[str] = None
    country: Optional[str] = None
    position: Optional[str] = None


class Space(SQLModel, table=True):
    __tablename__ = "spaces"

    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: int = Field(index=True, foreign_key="users.id")
    name: str
    description: Optional[str] = None
    invite_code: str = Field(index=True, unique=True)
    capacity: Optional[int] = None


class SpaceMember(SQLModel, table=True):
    __tablename__ = "space_members"
    __table_args__ = (
        # Redeeming the same invite code twice must not duplicate membership
        UniqueConstraint("space_id", "user_id", name="unique_space_member"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    space_id: int = Field(index=True, foreign_key="spaces.id")
    user_id: int = Field(index=True, foreign_key="users.id")


class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    space_id: int = Field(index=True, foreign_key="spaces.id")
    name: str
    description: Optional[str] = None
    capacity: int


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(index=True, foreign_key="rooms.id")
    primary_user_id: int = Field(index=True, foreign_key="users.id")
    invited_user_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    title: str
    description: str
    start_time: datetime = Field(sa_column=Column(UTCDateTime, nullable=False, index=True))
    end_time: datetime = Field(sa_column=Column(UTCDateTime, nullable=False, index=True))
