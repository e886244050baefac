import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from discovery.core.rate_limit import limiter
from discovery.main import create_app
from discovery.tests.factories import make_event


@pytest_asyncio.fixture
async def client(container, settings):
    limiter.reset()
    app = create_app(container=container, settings=settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_trending_endpoint(client, container):
    await container.ingestion.apply_created(make_event("c1", days=1))
    await container.ingestion.apply_created(make_event("c2", days=2))

    response = await client.get("/api/v1/discovery/trending", params={"limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert [item["contentId"] for item in data] == ["c2"]


@pytest.mark.asyncio
async def test_recommendations_require_user_id(client):
    response = await client.get("/api/v1/discovery/recommendations")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_recommendations_for_new_user_are_trending(client, container):
    await container.ingestion.apply_created(make_event("c1"))

    response = await client.get("/api/v1/discovery/recommendations", params={"userId": "nobody"})

    assert response.status_code == 200
    assert [item["contentId"] for item in response.json()] == ["c1"]


@pytest.mark.asyncio
async def test_search_endpoint_passes_tags(client, container):
    await container.ingestion.apply_created(make_event("c1", title="Robots", tags=["ml"]))
    await container.ingestion.apply_created(make_event("c2", title="Robots", days=1, tags=["ai"]))

    response = await client.get("/api/v1/discovery/search", params={"keywords": "robots", "tags": ["ml"]})

    assert response.status_code == 200
    assert [item["contentId"] for item in response.json()] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_manual_search_endpoint(client, container):
    await container.ingestion.apply_created(make_event("c1", category="Science"))
    await container.ingestion.apply_created(make_event("c2", category="Tech"))

    response = await client.post(
        "/api/v1/discovery/manual-search",
        json={"filters": {"category": "Science"}, "limit": 5}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["content"][0]["contentId"] == "c1"


@pytest.mark.asyncio
async def test_preference_routes(client, container):
    await container.ingestion.apply_created(make_event("c1", category="Tech", tags=["ai"]))

    response = await client.put("/api/v1/discovery/preferences/u1", json={"favoriteCategories": ["Tech"]})
    assert response.status_code == 200
    assert response.json()["favoriteCategories"] == ["Tech"]

    response = await client.post("/api/v1/discovery/preferences/u1/content/c1")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User preference updated successfully"
    assert body["preferences"]["watchedContent"] == ["c1"]
    assert body["preferences"]["categoryWeights"] == {"Tech": 1}

    response = await client.get("/api/v1/discovery/preferences/u1")
    assert response.status_code == 200
    assert response.json()["watchedContent"] == ["c1"]


@pytest.mark.asyncio
async def test_command_listing(client):
    response = await client.get("/api/v1/commands")

    assert response.status_code == 200
    assert "search_content" in response.json()["commands"]


@pytest.mark.asyncio
async def test_command_endpoint_runs_events_and_queries(client):
    response = await client.post("/api/v1/commands/content_created", json=make_event("c1"))
    assert response.status_code == 200
    assert response.json() == {"command": "content_created", "result": None}

    response = await client.post("/api/v1/commands/get_trending", json={"limit": 5})
    assert response.status_code == 200
    assert [item["contentId"] for item in response.json()["result"]] == ["c1"]


@pytest.mark.asyncio
async def test_unknown_command_is_not_found(client):
    response = await client.post("/api/v1/commands/drop_tables", json={})

    assert response.status_code == 404
    assert response.json()["detail"]["error_code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_command_payload_is_rejected(client):
    response = await client.post("/api/v1/commands/get_similar", json={"limit": 3})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error_code"] == "INVALID_PAYLOAD"
    assert detail["metadata"]["errors"][0]["loc"] == ["contentId"]


@pytest.mark.asyncio
async def test_health_reports_degraded_search_cluster(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["components"]["redis"] is True
    assert data["components"]["elasticsearch"] is False


@pytest.mark.asyncio
async def test_preference_writes_are_rate_limited(client):
    responses = []
    for _ in range(21):
        responses.append(await client.put("/api/v1/discovery/preferences/u1", json={"favoriteTags": ["ai"]}))

    assert all(r.status_code == 200 for r in responses[:20])
    assert responses[20].status_code == 429
