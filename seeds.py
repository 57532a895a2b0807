"""
Seed a database with sample users, a space, two rooms and a booking.

    WIPE=true python seeds.py

With ``WIPE=true`` every table is dropped and recreated first; otherwise the
rows are added to whatever is there, and an existing seed user makes the run
fail with ``ConflictError``.
"""
import asyncio
from datetime import datetime, timezone

import settings
from app_logger import attach_stream_handler, get_logger
from database import async_session, drop_db, engine, init_db
from errors import RoomBookingError
from models import Booking, Room, Space, User
from repository import BookingRepository, RoomRepository, SpaceRepository, UserRepository
from security import generate_invite_code, hash_password

log = get_logger("seeds")

SEED_USERS = [
    dict(first_name="John", last_name="Doe", email="john.doe@example.com", password="password123",
         post_code="12345", country="NZ", position="Developer"),
    dict(first_name="Alice", last_name="Smith", email="alice.smith@example.com", password="securepass",
         post_code="67890", country="AUS", position="Manager"),
    dict(first_name="Bob", last_name="Johnson", email="bob.johnson@example.com", password="bobspassword",
         post_code="54321", country="ID", position="Designer"),
]

SEED_ROOMS = [
    dict(name="Room 1", description="This is Room 1", capacity=5),
    dict(name="Room 2", description="This is Room 2", capacity=8),
]


async def seed_database(wipe: bool = settings.WIPE) -> dict:
    """Insert the sample rows and return them grouped by table."""
    if wipe:
        await drop_db()
    await init_db()

    async with async_session() as session:
        users_repo = UserRepository(session)
        users = []
        for data in SEED_USERS:
            user = User(**{**data, "password": hash_password(data["password"])})
            users.append(await users_repo.create(user))

        # The first user administers the space; everyone else is a member
        spaces_repo = SpaceRepository(session)
        space = await spaces_repo.create(Space(
            admin_id=users[0].id,
            name="Sample Space",
            description="This is a sample space",
            invite_code=generate_invite_code(),
            capacity=10,
        ))
        await spaces_repo.replace_members(space, [u.id for u in users])

        rooms_repo = RoomRepository(session)
        rooms = [await rooms_repo.create(Room(space_id=space.id, **data)) for data in SEED_ROOMS]

        booking = await BookingRepository(session).create(Booking(
            room_id=rooms[0].id,
            primary_user_id=users[0].id,
            invited_user_ids=[],
            title="Meeting 1",
            description="This is Meeting 1",
            start_time=datetime(2023, 1, 1, 8, tzinfo=timezone.utc),
            end_time=datetime(2023, 1, 1, 9, tzinfo=timezone.utc),
        ))

    log.info("Seeded %s users, space %s (invite code %s), %s rooms, booking %s",
             len(users), space.id, space.invite_code, len(rooms), booking.id)
    return {"users": users, "spaces": [space], "rooms": rooms, "bookings": [booking]}


async def main():
    attach_stream_handler()
    try:
        await seed_database()
    except RoomBookingError as exc:
        log.error("Error seeding database: %s", exc.message)
        raise
    finally:
        await engine.dispose()
        log.info("DB seed connection closed.")


if __name__ == "__main__":
    asyncio.run(main())
