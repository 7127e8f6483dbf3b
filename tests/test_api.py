from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from db import database
from main import app

STARTER = {
    "package_info": {"id": "starter", "description": "Starter words", "level": "beginner"},
    "words": [
        {"id": 1, "english": "apple", "turkish": "elma", "example": {"en": "An apple a day.", "tr": "Günde bir elma."}},
        {"id": 2, "english": "book", "turkish": "kitap"},
        {"id": 3, "english": "cat", "turkish": "kedi"},
        {"id": 4, "english": "door", "turkish": "kapı"},
    ],
}


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[triage]",
                "free_daily_quota = 2",
                "",
                "[daily]",
                "goal_words = 5",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def client(tmp_path, monkeypatch):
    config_dir = tmp_path / ".wordcoach"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "wordcoach.db")
    for name in ("FREE_DAILY_QUOTA", "PREMIUM_DAILY_QUOTA", "DAILY_GOAL_WORDS", "MASTERY_THRESHOLD_DAYS"):
        monkeypatch.delenv(name, raising=False)

    with TestClient(app) as client:
        yield client


def _decide(client, concept_id, outcome):
    return client.post("/triage/ada/decide", json={"concept_id": concept_id, "outcome": outcome})


def test_import_lists_package_with_concepts(client):
    response = client.post("/packages/import", json=STARTER)
    assert response.status_code == 200
    assert response.json() == {"package_id": "starter", "imported": 4}

    again = client.post("/packages/import", json=STARTER)
    assert again.json()["imported"] == 0

    packages = client.get("/packages/").json()
    assert packages == [{"id": "starter", "name": "Starter words", "level": "beginner", "concept_count": 4}]

    concepts = client.get("/packages/starter/concepts").json()
    assert [concept["front_text"] for concept in concepts] == ["apple", "book", "cat", "door"]
    assert concepts[0]["example_back"] == "Günde bir elma."


def test_import_rejects_duplicate_concept_ids(client):
    payload = {"package_info": {"id": "dup"}, "words": [STARTER["words"][1], STARTER["words"][1]]}

    response = client.post("/packages/import", json=payload)

    assert response.status_code == 400
    assert client.get("/packages/dup/concepts").status_code == 404


def test_triage_then_review_flow(client):
    client.post("/packages/import", json=STARTER)

    loaded = client.post("/triage/ada/load/starter")
    assert loaded.status_code == 200
    assert loaded.json()["current_concept"]["id"] == 1
    assert loaded.json()["quota_remaining"] == 2

    assert _decide(client, 1, "keep").status_code == 200
    state = _decide(client, 2, "keep").json()
    assert state["quota_remaining"] == 0

    rejected = _decide(client, 3, "keep")
    assert rejected.status_code == 402
    assert rejected.json()["detail"]["error"] == "QuotaExceeded"

    assert _decide(client, 1, "keep").status_code == 409
    state = _decide(client, 3, "discard").json()
    assert state["selected_count"] == 2
    assert state["hidden_count"] == 1
    assert state["current_concept"]["id"] == 4
    assert state["progress"] == pytest.approx(0.75)

    finished = client.post("/triage/ada/finish")
    assert finished.status_code == 200
    assert finished.json()["can_undo"] is False

    due = client.get("/review/ada/due").json()
    assert due == {"direction": "front_to_back", "queue": [1, 2], "completed_today": 0}

    graded = client.post("/review/ada/grade", json={"concept_id": 1, "grade": "easy", "elapsed_ms": 1200})
    assert graded.status_code == 200
    body = graded.json()
    assert body["progress"]["phase"] == "review"
    assert body["progress"]["interval_days"] == 1
    assert body["next_review_in"] == "in 1 day"

    due = client.get("/review/ada/due", params={"direction": "front_to_back"}).json()
    assert due["queue"] == [2]
    assert due["completed_today"] == 1
    assert client.get("/review/ada/due", params={"direction": "back_to_front"}).json()["queue"] == [1, 2]

    hidden = client.post("/review/ada/grade", json={"concept_id": 3, "grade": "easy"})
    assert hidden.status_code == 404
    assert hidden.json()["detail"]["error"] == "ConceptNotInDeck"

    summary = client.get("/progress/ada/summary").json()
    assert summary["streak_days"] == 1
    assert summary["daily_goal_progress"]["words_studied_today"] == 1
    assert summary["daily_goal_progress"]["daily_goal"] == 5
    assert summary["daily_goal_progress"]["total_deck_cards"] == 2
    assert client.get("/progress/ada/total-words").json() == {"total_words_studied": 1}


def test_undo_and_skip_over_http(client):
    client.post("/packages/import", json=STARTER)
    client.post("/triage/ada/load/starter")
    _decide(client, 1, "discard")

    undone = client.post("/triage/ada/undo").json()
    assert undone["current_concept"]["id"] == 1
    assert undone["hidden_count"] == 0
    assert undone["can_undo"] is False

    skipped = client.post("/triage/ada/skip").json()
    assert skipped["completed"] is True
    assert skipped["remaining"] == 0

    finished = client.post("/triage/ada/finish")
    assert finished.status_code == 422
    assert finished.json()["detail"]["error"] == "EmptyDeckError"


def test_triage_errors_map_to_http_status(client):
    assert client.post("/triage/ada/load/missing").status_code == 404
    assert _decide(client, 1, "keep").status_code == 409
    assert _decide(client, 1, "maybe").status_code == 422
    assert client.get("/triage/ada").json()["package_id"] is None


def test_app_open_is_recorded_once_per_day(client):
    first = client.post("/progress/ada/app-open").json()
    second = client.post("/progress/ada/app-open").json()

    assert first["recorded"] is True
    assert first["entry"]["streak_count"] == 1
    assert second["entry"] == first["entry"]

    monthly = client.get("/progress/ada/monthly").json()
    assert monthly["active_days_this_month"] == 1
    assert len(monthly["chart"]) == 7
    assert monthly["chart"][-1]["value"] == 1


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
