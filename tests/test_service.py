from __future__ import annotations

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from phonerec.catalog import ItemCatalog  # noqa: E402
from phonerec.service.app import app  # noqa: E402
from phonerec.user_cf.recommender import RecommenderConfig, UserBasedRecommender  # noqa: E402


@pytest.fixture()
def client(scenario_a_store):
    app.state.recommender = UserBasedRecommender(
        scenario_a_store, RecommenderConfig(neighborhood_size=1, num_recommendations=1)
    )
    app.state.catalog = ItemCatalog.from_mapping(
        {"itemC": {"brand": "Google", "name": "Pixel 7a", "category": "Mid-range Excellence", "price": "449"}}
    )
    try:
        yield TestClient(app)
    finally:
        app.state.recommender = None
        app.state.catalog = None


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "users": 3, "items": 3, "ratings": 7}


def test_recommend_joins_catalog(client: TestClient) -> None:
    resp = client.post("/recommend", json={"user_id": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["n"] == 1 and body["k"] == 1
    assert len(body["results"]) == 1
    item = body["results"][0]
    assert item["itemId"] == "itemC"
    assert item["predicted_value"] == pytest.approx(4.0)
    assert item["brand"] == "Google"


def test_recommend_accepts_textual_user_id(client: TestClient) -> None:
    resp = client.post("/recommend", json={"user_id": "1", "n": 5, "k": 5, "negative_similarity": "include"})
    assert resp.status_code == 200
    assert [r["itemId"] for r in resp.json()["results"]] == ["itemC"]


def test_unknown_user_gets_empty_results(client: TestClient) -> None:
    resp = client.post("/recommend", json={"user_id": 404})
    assert resp.status_code == 200
    assert resp.json()["results"] == []


def test_similar_users(client: TestClient) -> None:
    resp = client.post("/similar_users", json={"user_id": 1, "k": 5})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [r["userId"] for r in results] == [2, 3]
    assert results[0]["similarity"] == pytest.approx(1.0)


def test_invalid_request_is_rejected(client: TestClient) -> None:
    assert client.post("/recommend", json={"user_id": 1, "n": 0}).status_code == 422


def test_uninitialised_service_returns_503() -> None:
    app.state.recommender = None
    assert TestClient(app).get("/health").status_code == 503
