import asyncio
from pathlib import Path
from unittest.mock import patch

from flightsearch.services.preferences_store import UserPreferencesRepository


def test_missing_file_reads_as_empty(preferences):
    assert asyncio.run(preferences.load()) == ""


def test_saved_query_survives_new_repository(preferences, preferences_path):
    """Test the query is durable: a fresh repository on the same file reads it back"""
    asyncio.run(preferences.save_search_query("LAX"))

    reopened = UserPreferencesRepository(preferences_path)
    assert asyncio.run(reopened.load()) == "LAX"


def test_save_overwrites_previous_value(preferences, preferences_path):
    async def scenario():
        await preferences.save_search_query("par")
        await preferences.save_search_query("jfk")

    asyncio.run(scenario())
    assert asyncio.run(UserPreferencesRepository(preferences_path).load()) == "jfk"


def test_corrupt_file_reads_as_empty(preferences, preferences_path):
    preferences_path.parent.mkdir(parents=True, exist_ok=True)
    preferences_path.write_text("{not json", encoding="utf-8")
    assert asyncio.run(preferences.load()) == ""


def test_read_error_reads_as_empty(preferences, preferences_path):
    preferences_path.parent.mkdir(parents=True, exist_ok=True)
    preferences_path.write_text('{"search_query": "LAX"}', encoding="utf-8")

    with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
        assert asyncio.run(preferences.load()) == ""


def test_write_error_is_swallowed(preferences, preferences_path):
    """Test a failed write never raises and is not published"""
    async def scenario():
        updates = await preferences.observe_query()
        with patch("flightsearch.services.preferences_store.os.replace", side_effect=OSError("disk full")):
            await preferences.save_search_query("LAX")
        await preferences.save_search_query("JFK")
        received = [await updates.__anext__() for _ in range(2)]
        updates.close()
        return received

    assert asyncio.run(scenario()) == ["", "JFK"]
    assert asyncio.run(UserPreferencesRepository(preferences_path).load()) == "JFK"


def test_writes_are_applied_in_call_order(preferences, preferences_path):
    async def scenario():
        await asyncio.gather(*[preferences.save_search_query(q) for q in ["p", "pa", "par"]])

    asyncio.run(scenario())
    assert asyncio.run(UserPreferencesRepository(preferences_path).load()) == "par"


def test_observe_emits_stored_value_then_writes(preferences):
    async def scenario():
        await preferences.save_search_query("CDG")
        updates = await preferences.observe_query()
        await preferences.save_search_query("ORY")
        received = [await updates.__anext__() for _ in range(2)]
        updates.close()
        return received

    assert asyncio.run(scenario()) == ["CDG", "ORY"]


def test_undecodable_file_reads_as_empty(preferences, preferences_path):
    """Test bytes that are not UTF-8 degrade to an empty query instead of raising"""
    preferences_path.parent.mkdir(parents=True, exist_ok=True)
    preferences_path.write_bytes(b"\xff\xfe\x00garbage")
    assert asyncio.run(preferences.load()) == ""
