import pytest

from discovery.models import SearchQuery
from discovery.tests.factories import make_event


@pytest.mark.asyncio
async def test_update_is_visible_through_the_trending_cache(container):
    assert await container.ingestion.apply_created(make_event("c1", title="First cut"))

    before = await container.engine.get_trending_content(5)
    assert [record.title for record in before] == ["First cut"]
    assert await container.cache.get("trending_5") is not None

    assert await container.ingestion.apply_updated(make_event("c1", title="Final cut"))

    assert await container.cache.get("trending_5") is None
    after = await container.engine.get_trending_content(5)
    assert [record.title for record in after] == ["Final cut"]


@pytest.mark.asyncio
async def test_created_invalidates_recommendations_for_every_user(container):
    await container.cache.set_tracked("recommendations_u1_10", [], "recommendations", "recommendations_u1")
    await container.cache.set_tracked("recommendations_u2_5", [], "recommendations", "recommendations_u2")

    await container.ingestion.apply_created(make_event("c1"))

    assert await container.cache.get("recommendations_u1_10") is None
    assert await container.cache.get("recommendations_u2_5") is None


@pytest.mark.asyncio
async def test_updated_invalidates_similar_results_of_that_content_only(container):
    await container.cache.set_tracked("similar_c1_10", [], "similar_c1")
    await container.cache.set_tracked("similar_c2_10", [], "similar_c2")

    await container.ingestion.apply_updated(make_event("c1"))

    assert await container.cache.get("similar_c1_10") is None
    assert await container.cache.get("similar_c2_10") == []


@pytest.mark.asyncio
async def test_search_results_are_left_to_expire(container):
    key = SearchQuery(keywords="robots").cache_key()
    await container.cache.set_tracked(key, [], "search")

    await container.ingestion.apply_created(make_event("c1"))
    await container.ingestion.apply_updated(make_event("c1", title="Robots"))

    assert await container.cache.get(key) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"title": "no id"},
    make_event("c1", type="movie"),
    make_event("c1", duration=-5),
    "not an object",
])
async def test_malformed_events_are_dropped(container, payload):
    assert await container.ingestion.apply_created(payload) is False
    assert await container.replica.count({}) == 0


@pytest.mark.asyncio
async def test_replica_failure_is_logged_not_raised(container, monkeypatch):
    async def broken_upsert(event):
        raise RuntimeError("replica unavailable")

    monkeypatch.setattr(container.replica, "upsert", broken_upsert)
    await container.cache.set_tracked("trending_5", [], "trending")

    assert await container.ingestion.apply_updated(make_event("c1")) is False
    # nothing was written, so nothing is invalidated
    assert await container.cache.get("trending_5") == []
