import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from core.persistence import InMemoryStore, NullStore

FEED = {
    "bizCode": 10000,
    "data": {
        "tournaments": [
            {
                "events": [
                    {
                        "estimateStartTime": 1737880440000,
                        "setScore": "2:1",
                        "homeTeamName": "LEV",
                        "awayTeamName": "HSV",
                        "matchStatus": "End",
                    }
                ]
            }
        ]
    },
}

ODDS_TEXT = "Time\tEvent\t1\tX\t2\tGoals\tOver\tUnder\n08:34\tLEV - HSV\t1.55\t3.80\t5.20\t2.5\t1.45\t2.60"


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(store):
    return TestClient(create_app(store=store))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["store_ready"] is True
    assert body["odds_loaded"] == 0


def test_health_null_store():
    r = TestClient(create_app(store=NullStore())).get("/health")
    assert r.json()["store_ready"] is False


def test_import_feed(client, store):
    r = client.post("/results/feed", json=FEED)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["count"] == 1
    assert store.get_all_results()[0].block_time == "08:34"

    again = client.post("/results/feed", json=FEED).json()
    assert again["data"]["count"] == 0
    assert again["data"]["duplicates"] == 1


def test_import_feed_invalid(client):
    r = client.post("/results/feed", json={"data": {}})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert "Struttura feed non valida" in body["error"]


def test_import_text_invalid_row(client):
    r = client.post("/results/text", json={"text": "08:24\tLEV 0-2 HSV\nbroken"})
    assert r.status_code == 400
    assert r.json()["error"].startswith("Riga 2: ")


def test_results_stats(client):
    client.post("/results/text", json={"text": "08:00\tA 2-1 B\n08:00\tA 0-0 C\n09:00\tD 3-3 E"})
    block = client.get("/results/stats", params={"block_time": "08:00"}).json()["data"]
    assert block["total_matches"] == 2
    assert block["avg_goals"] == 1.5
    overall = client.get("/results/stats").json()["data"]
    assert overall["total_matches"] == 3


def test_results_null_store_failure():
    client = TestClient(create_app(store=NullStore()))
    r = client.post("/results/text", json={"text": "08:00\tA 2-1 B"})
    assert r.status_code == 500
    assert r.json()["error"] == "store non inizializzato"


def test_odds_replace_all(client):
    assert client.post("/odds", json={"text": ODDS_TEXT}).json()["data"]["count"] == 1
    client.post("/odds", json={"text": ODDS_TEXT})
    odds = client.get("/odds").json()["data"]
    assert len(odds) == 1
    assert odds[0]["home_team"] == "LEV"


def test_odds_invalid(client):
    r = client.post("/odds", json={"text": "Time\tEvent"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_feed_after_odds_links_over25(client, store):
    client.post("/odds", json={"text": ODDS_TEXT})
    body = client.post("/results/feed", json=FEED).json()
    assert body["over25_linked"] == 1
    assert store.get_over25_results()[0].over25_odd == 1.45


def test_metrics_endpoint(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "eagle_" in r.text
