import pytest

from errors import ConflictError
from repository import SpaceRepository
from seeds import seed_database

pytestmark = pytest.mark.anyio


async def test_seed_creates_linked_sample_data(db, session, client):
    created = await seed_database(wipe=True)
    john, alice, bob = created["users"]
    space = created["spaces"][0]

    assert space.admin_id == john.id
    assert space.invite_code
    assert await SpaceRepository(session).member_ids(space.id) == [alice.id, bob.id]
    assert [r.space_id for r in created["rooms"]] == [space.id, space.id]
    assert created["bookings"][0].room_id == created["rooms"][0].id

    r = await client.post("/users/login", json={"email": "john.doe@example.com", "password": "password123"})
    assert r.status_code == 200


async def test_reseed_needs_wipe(db):
    await seed_database(wipe=True)
    with pytest.raises(ConflictError):
        await seed_database(wipe=False)

    created = await seed_database(wipe=True)
    assert len(created["users"]) == 3
