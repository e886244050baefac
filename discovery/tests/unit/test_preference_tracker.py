import asyncio

import pytest

from discovery.models import UserPreference
from discovery.tests.factories import make_event


@pytest.mark.asyncio
async def test_recording_the_same_content_twice(container):
    await container.ingestion.apply_created(make_event("c1", category="Tech", tags=["ai", "robots"]))

    await container.tracker.record_interaction("u1", "c1")
    preference = await container.tracker.record_interaction("u1", "c1")

    assert preference.watched_content == ["c1"]
    assert preference.category_weights == {"Tech": 2}
    assert preference.tag_weights == {"ai": 2, "robots": 2}

    stored = await container.preferences.get("u1")
    assert stored.watched_content == ["c1"]
    assert stored.category_weights == {"Tech": 2}


@pytest.mark.asyncio
async def test_interaction_invalidates_that_users_recommendations(container):
    await container.ingestion.apply_created(make_event("c1"))
    await container.cache.set_tracked("recommendations_u1_10", [], "recommendations", "recommendations_u1")
    await container.cache.set_tracked("recommendations_u2_10", [], "recommendations", "recommendations_u2")

    await container.tracker.record_interaction("u1", "c1")

    assert await container.cache.get("recommendations_u1_10") is None
    assert await container.cache.get("recommendations_u2_10") == []


@pytest.mark.asyncio
async def test_watched_content_drops_out_of_recommendations(container):
    await container.ingestion.apply_created(make_event("c1", days=2))
    await container.ingestion.apply_created(make_event("c2", days=1))
    await container.preferences.save(UserPreference(user_id="u1", favorite_categories=["Tech"]))

    first = await container.engine.get_recommendations("u1", 10)
    assert [record.content_id for record in first] == ["c1", "c2"]

    await container.tracker.record_interaction("u1", "c1")

    second = await container.engine.get_recommendations("u1", 10)
    assert [record.content_id for record in second] == ["c2"]


@pytest.mark.asyncio
async def test_unknown_content_is_recorded_without_weights(container):
    preference = await container.tracker.record_interaction("u1", "ghost")

    assert preference.watched_content == ["ghost"]
    assert preference.category_weights == {}
    assert preference.tag_weights == {}


@pytest.mark.asyncio
async def test_get_preferences_creates_an_empty_record(container):
    preference = await container.tracker.get_preferences("newcomer")

    assert preference.user_id == "newcomer"
    assert preference.watched_content == []
    assert await container.preferences.get("newcomer") is not None


@pytest.mark.asyncio
async def test_update_preferences_replaces_only_given_lists(container):
    await container.preferences.save(UserPreference(
        user_id="u1",
        favorite_tags=["ai"],
        watched_content=["c1"],
    ))
    await container.cache.set_tracked("recommendations_u1_10", [], "recommendations", "recommendations_u1")

    preference = await container.tracker.update_preferences("u1", favorite_categories=["Science"])

    assert preference.favorite_categories == ["Science"]
    assert preference.favorite_tags == ["ai"]
    assert preference.watched_content == ["c1"]
    assert await container.cache.get("recommendations_u1_10") is None


@pytest.mark.asyncio
async def test_interactions_racing_a_favorites_update_are_all_kept(container, monkeypatch):
    await container.ingestion.apply_created(make_event("c1", category="Tech", tags=["ai"]))
    await container.tracker.record_interaction("u1", "c1")

    lookup = container.engine.get_content

    async def slow_lookup(content_id):
        await asyncio.sleep(0.05)
        return await lookup(content_id)

    monkeypatch.setattr(container.engine, "get_content", slow_lookup)

    await asyncio.gather(
        container.tracker.update_preferences("u1", favorite_categories=["Science"]),
        container.tracker.record_interaction("u1", "c2-unknown"),
        container.tracker.record_interaction("u1", "c1"),
    )

    stored = await container.preferences.get("u1")
    assert "c2-unknown" in stored.watched_content
    assert "c1" in stored.watched_content
    assert stored.category_weights == {"Tech": 2}
    assert stored.favorite_categories == ["Science"]
