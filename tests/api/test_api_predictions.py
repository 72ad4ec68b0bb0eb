import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.persistence import InMemoryStore

SCORES = [(2, 0), (0, 2), (1, 1), (2, 1), (1, 2), (3, 0), (0, 3), (2, 2), (3, 1), (1, 3)]


@pytest.fixture
def store(make_result, make_quote):
    s = InMemoryStore()
    # dedup su (fascia, squadre, score): servono score distinti
    s.insert_results([make_result(home="A", away="B", hg=hg, ag=ag) for hg, ag in SCORES])
    s.insert_odds([make_quote(home="A", away="B"), make_quote(home="C", away="D")])
    return s


@pytest.fixture
def client(store):
    return TestClient(create_app(store=store))


def test_list_predictions(client):
    r = client.get("/predictions")
    assert r.status_code == 200
    data = r.json()["data"]
    assert [p["status"] for p in data] == ["SAFE", "RISKY"]
    assert data[0]["prediction"] == "OVER 1.5"
    assert data[0]["confidence"] == 95
    assert data[0]["match"]["home_team"] == "A"
    assert data[0]["historical_stats"]["total_matches"] == 10


def test_history_after_generation(client):
    client.get("/predictions")
    history = client.get("/predictions/history", params={"limit": 5}).json()["data"]
    assert len(history) == 1
    assert history[0]["home_team"] == "A"
    assert history[0]["resolved"] is False


def test_history_limit_validation(client):
    assert client.get("/predictions/history", params={"limit": 0}).status_code == 422
