from datetime import datetime

import pytest

from discovery.models import ContentEvent, ManualSearchFilters, ManualSearchQuery
from discovery.services.replica_store import ReplicaStore, build_manual_filter, resolve_sort
from discovery.tests.factories import make_event


@pytest.fixture
def store(db):
    return ReplicaStore(db)


async def ingest(store, *payloads):
    for payload in payloads:
        await store.upsert(ContentEvent.model_validate(payload))


def test_free_text_filters_are_escaped():
    query = build_manual_filter(ManualSearchFilters(title="a.*b", description="(x+)+$"))

    assert query["$or"] == [
        {"title": {"$regex": r"a\.\*b", "$options": "i"}},
        {"description": {"$regex": r"\(x\+\)\+\$", "$options": "i"}},
    ]


def test_manual_filter_combines_exact_tag_and_date_clauses():
    filters = ManualSearchFilters.model_validate({
        "type": "documentary",
        "category": "Science",
        "language": "fr",
        "tags": ["space"],
        "publishDate": {"start": "2024-01-01T00:00:00Z", "end": "2024-02-01T00:00:00Z"},
    })

    query = build_manual_filter(filters)

    assert query["type"] == "documentary"
    assert query["category"] == "Science"
    assert query["language"] == "fr"
    assert query["tags"] == {"$in": ["space"]}
    assert query["publishDate"] == {"$gte": datetime(2024, 1, 1), "$lte": datetime(2024, 2, 1)}
    assert "$or" not in query


@pytest.mark.parametrize("sort_by", ["__proto__", "$where", "status", None])
def test_unknown_sort_field_falls_back_to_publish_date(sort_by):
    assert resolve_sort(sort_by, "desc")[0] == ("publishDate", -1)


def test_sort_order_ascending_only_when_asked():
    assert resolve_sort("title", "asc")[0] == ("title", 1)
    assert resolve_sort("title", "sideways")[0] == ("title", -1)


@pytest.mark.asyncio
async def test_upsert_is_idempotent_on_content_id(store):
    await ingest(store, make_event("c1"))
    first = await store.get("c1")

    await ingest(store, make_event("c1", title="Renamed"))
    second = await store.get("c1")

    assert await store.count({}) == 1
    assert second.title == "Renamed"
    assert second.created_at == first.created_at


@pytest.mark.asyncio
async def test_manual_search_pagination(store):
    await ingest(store, *(make_event(f"c{i:02d}", days=i) for i in range(25)))

    result = await store.manual_search(ManualSearchQuery(page=2, limit=10))

    assert result.total == 25
    assert result.total_pages == 3
    assert result.page == 2
    assert len(result.content) == 10
    # newest first: page two starts at the eleventh newest record
    assert result.content[0].content_id == "c14"


@pytest.mark.asyncio
async def test_manual_search_matches_pattern_characters_literally(store):
    await ingest(
        store,
        make_event("literal", title="Notes on a.*b patterns"),
        make_event("wildcard", title="a quick brown fox"),
    )

    result = await store.manual_search(ManualSearchQuery.model_validate({"filters": {"title": "A.*B"}}))

    assert [record.content_id for record in result.content] == ["literal"]


@pytest.mark.asyncio
async def test_manual_search_with_proto_sort_uses_publish_date(store):
    await ingest(store, make_event("old", days=1), make_event("new", days=5))

    result = await store.manual_search(ManualSearchQuery.model_validate({"sortBy": "__proto__"}))

    assert [record.content_id for record in result.content] == ["new", "old"]


@pytest.mark.asyncio
async def test_manual_search_clamps_limit_and_page(store):
    await ingest(store, make_event("c1"))

    result = await store.manual_search(ManualSearchQuery(page=0, limit=1000), max_limit=100)

    assert result.page == 1
    assert result.total_pages == 1


@pytest.mark.asyncio
async def test_find_published_skips_drafts(store):
    await ingest(store, make_event("live"), make_event("draft", status="draft"))

    records = await store.find_published(limit=10)

    assert [record.content_id for record in records] == ["live"]
