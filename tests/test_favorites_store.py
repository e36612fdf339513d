import asyncio

import pytest
from sqlalchemy import insert as sql_insert
from sqlalchemy.exc import IntegrityError

from flightsearch.models.favorite import Favorite


def pairs(favorites):
    return [(fav.departure_code, fav.destination_code) for fav in favorites]


def test_starts_empty(favorites_store):
    assert asyncio.run(favorites_store.refresh()) == []
    assert favorites_store.get_favorites() == []


def test_add_favorite(favorites_store):
    asyncio.run(favorites_store.add_favorite("JFK", "LAX"))
    assert pairs(favorites_store.get_favorites()) == [("JFK", "LAX")]


def test_add_same_pair_twice_keeps_one_row(favorites_store):
    """Test adding an existing pair replaces it instead of duplicating it"""
    async def scenario():
        await favorites_store.add_favorite("JFK", "LAX")
        await favorites_store.add_favorite("CDG", "ORY")
        await favorites_store.add_favorite("JFK", "LAX")
        return await favorites_store.refresh()

    favorites = asyncio.run(scenario())
    assert sorted(pairs(favorites)) == [("CDG", "ORY"), ("JFK", "LAX")]
    assert len(favorites) == 2


def test_reverse_pair_is_a_different_route(favorites_store):
    async def scenario():
        await favorites_store.add_favorite("JFK", "LAX")
        await favorites_store.add_favorite("LAX", "JFK")

    asyncio.run(scenario())
    assert pairs(favorites_store.get_favorites()) == [("JFK", "LAX"), ("LAX", "JFK")]


def test_snapshot_is_ordered_by_insertion(favorites_store):
    async def scenario():
        for dep, dest in [("LAX", "JFK"), ("ATL", "CDG"), ("JFK", "ORY")]:
            await favorites_store.add_favorite(dep, dest)

    asyncio.run(scenario())
    assert pairs(favorites_store.get_favorites()) == [("LAX", "JFK"), ("ATL", "CDG"), ("JFK", "ORY")]


def test_remove_favorite(favorites_store):
    async def scenario():
        await favorites_store.add_favorite("JFK", "LAX")
        return await favorites_store.remove_favorite("JFK", "LAX")

    assert asyncio.run(scenario()) is True
    assert favorites_store.get_favorites() == []


def test_remove_absent_favorite_is_noop(favorites_store):
    async def scenario():
        await favorites_store.add_favorite("JFK", "LAX")
        return await favorites_store.remove_favorite("LAX", "JFK")

    assert asyncio.run(scenario()) is False
    assert pairs(favorites_store.get_favorites()) == [("JFK", "LAX")]


def test_remove_favorite_by_id(favorites_store):
    async def scenario():
        await favorites_store.add_favorite("JFK", "LAX")
        await favorites_store.add_favorite("CDG", "ORY")
        target = favorites_store.get_favorites()[0]
        removed = await favorites_store.remove_favorite_by_id(target.id)
        missing = await favorites_store.remove_favorite_by_id(9999)
        return removed, missing

    removed, missing = asyncio.run(scenario())
    assert removed is True
    assert missing is False
    assert pairs(favorites_store.get_favorites()) == [("CDG", "ORY")]


def test_toggle_adds_then_removes(favorites_store):
    async def scenario():
        first = await favorites_store.toggle_favorite("JFK", "LAX")
        after_first = pairs(favorites_store.get_favorites())
        second = await favorites_store.toggle_favorite("JFK", "LAX")
        return first, after_first, second

    first, after_first, second = asyncio.run(scenario())
    assert first is True
    assert after_first == [("JFK", "LAX")]
    assert second is False
    assert favorites_store.get_favorites() == []


def test_concurrent_toggles_are_serialized(favorites_store):
    """Test an even number of simultaneous toggles leaves the pair unchanged"""
    async def scenario():
        results = await asyncio.gather(*[favorites_store.toggle_favorite("JFK", "LAX") for _ in range(4)])
        return results, await favorites_store.refresh()

    results, favorites = asyncio.run(scenario())
    assert sorted(results) == [False, False, True, True]
    assert favorites == []


def test_subscription_emits_snapshot_after_each_write(favorites_store):
    async def scenario():
        updates = await favorites_store.list_favorites()
        await favorites_store.add_favorite("JFK", "LAX")
        await favorites_store.remove_favorite("JFK", "LAX")
        received = [await updates.__anext__() for _ in range(3)]
        updates.close()
        return received

    received = asyncio.run(scenario())
    assert [pairs(snapshot) for snapshot in received] == [[], [("JFK", "LAX")], []]


def test_table_rejects_duplicate_pairs(seeded_session_factory):
    """Test the (departure, destination) unique constraint at the storage layer"""
    db = seeded_session_factory()
    try:
        db.execute(sql_insert(Favorite).values(departure_code="JFK", destination_code="LAX"))
        with pytest.raises(IntegrityError):
            db.execute(sql_insert(Favorite).values(departure_code="JFK", destination_code="LAX"))
        db.rollback()
    finally:
        db.close()
