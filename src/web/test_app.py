import pytest
from fastapi.testclient import TestClient

from web.app import WebConfig, app, get_distribution


@pytest.fixture(scope="module")
def client() -> TestClient:
    get_distribution.cache_clear()
    return TestClient(app)


def test_home(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["notation"] == "2d6"
    assert data["totalCombinations"] == 36
    assert data["mostLikely"] == [7]
    assert data["stats"]["exactly"] == pytest.approx(1 / 6)
    assert data["modifierImpact"]["newTarget"] == 6
    assert 20 in data["commonDice"]


def test_distribution(client):
    response = client.post("/distribution", json={"dice": [6, 8, 6]})
    assert response.status_code == 200
    data = response.json()
    assert data["notation"] == "2d6 + 1d8"
    assert data["groups"] == [{"count": 2, "sides": 6}, {"count": 1, "sides": 8}]
    assert data["totalCombinations"] == 288
    assert data["minSum"] == 3
    assert data["maxSum"] == 20
    assert [row["sum"] for row in data["table"]] == list(range(3, 21))
    assert sum(row["count"] for row in data["table"]) == 288


def test_empty_distribution(client):
    data = client.post("/distribution", json={"dice": []}).json()
    assert data["totalCombinations"] == 0
    assert data["minSum"] is None
    assert data["table"] == []


def test_stats(client):
    data = client.post("/stats", json={"dice": [6, 6], "target": 7}).json()
    assert data["count"] == 6
    assert data["stats"]["atLeast"] == pytest.approx(0.5833, abs=0.0001)


def test_impact(client):
    data = client.post("/impact", json={"dice": [6, 6], "target": 2, "modifier": 5}).json()
    assert data["newTarget"] == 2
    assert data["effectiveTarget"] == -3
    assert data["edge"] == "minimum"
    assert data["impact"]["atLeast"] == 0
    assert data["base"]["exactly"] == pytest.approx(1 / 36)


def test_invalid_dice(client):
    response = client.post("/distribution", json={"dice": [6, 0, 6]})
    assert response.status_code == 422
    data = response.json()
    assert data["index"] == 1
    assert data["sides"] == 0


def test_distributions_are_cached(client):
    get_distribution.cache_clear()
    client.post("/stats", json={"dice": [4, 4], "target": 5})
    client.post("/impact", json={"dice": [4, 4], "target": 5, "modifier": 1})
    info = get_distribution.cache_info()
    assert info.hits >= 1
    assert info.misses == 1


@pytest.mark.parametrize("dice", [
    [WebConfig.max_sides + 1],
    [6, 1000000000],
    [6] * (WebConfig.max_dice + 1),
])
def test_oversized_requests_rejected(client, dice):
    get_distribution.cache_clear()
    response = client.post("/distribution", json={"dice": dice})
    assert response.status_code == 422
    assert get_distribution.cache_info().misses == 0


def test_request_limits_allow_boundary(client):
    response = client.post("/stats", json={"dice": [WebConfig.max_sides, 1], "target": 2})
    assert response.status_code == 200
    assert response.json()["totalCombinations"] == WebConfig.max_sides
