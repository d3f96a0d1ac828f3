import json

import pytest

from escranking.app import create_app, main
from escranking.auth import AuthError, Claims
from escranking.scoring import score_ranking
from escranking.store import (
    ENDRESULT_COLLECTION,
    ENDRESULT_ID,
    LOCK_COLLECTION,
    LOCK_ID,
    RANKINGS_COLLECTION,
    USER_COLLECTION,
    MemoryStore,
)

CLIENT_ID = "client-id"
COUNTRIES = ["Sweden", "Norway", "Finland"]
USERS = {"token": "user-1", "other": "user-2"}


def fake_verifier(id_token, client_id):
    if id_token not in USERS:
        raise AuthError("No working key found")
    return Claims(aud=client_id, exp=0, iss="accounts.google.com", sub=USERS[id_token])


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store, tmp_path):
    path = tmp_path / "countries.json"
    path.write_text(json.dumps(COUNTRIES), encoding="utf-8")
    app = create_app(store, CLIENT_ID, fake_verifier, path)
    return app.test_client()


AUTH = {"Id-Token": "token"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"


def test_missing_header_is_unauthorized(client):
    assert client.get("/ranking").status_code == 401


def test_bad_token_is_unauthorized(client):
    assert client.get("/ranking", headers={"Id-Token": "secret"}).status_code == 401


def test_default_ranking_from_file(client):
    response = client.get("/ranking", headers=AUTH)
    assert response.status_code == 200
    assert response.get_json() == {"countries": COUNTRIES}


def test_ranking_round_trip(client, store):
    ranking = list(reversed(COUNTRIES))
    response = client.post("/ranking", headers=AUTH, json={"countries": ranking})
    assert response.status_code == 200
    assert store.get(RANKINGS_COLLECTION, "user-1") == {"countries": ranking}
    assert client.get("/ranking", headers=AUTH).get_json() == {"countries": ranking}


def test_invalid_ranking_body(client):
    response = client.post("/ranking", headers=AUTH, json={"countries": [1, 2]})
    assert response.status_code == 400


def test_user_round_trip(client):
    assert client.get("/user", headers=AUTH).status_code == 404
    assert client.post("/user", headers=AUTH, json={"name": "Alice"}).status_code == 200
    response = client.get("/user", headers=AUTH)
    assert response.get_json() == {"name": "Alice"}


def test_score_without_end_result_fails(client):
    assert client.get("/score", headers=AUTH).status_code == 500


def test_score_not_done(client, store):
    store.set(ENDRESULT_COLLECTION, ENDRESULT_ID, {"done": False, "countries": COUNTRIES})
    assert client.get("/score", headers=AUTH).status_code == 404


def test_score_and_leaderboard(client, store):
    store.set(ENDRESULT_COLLECTION, ENDRESULT_ID, {"done": True, "countries": COUNTRIES})
    store.set(USER_COLLECTION, "user-1", {"name": "Alice"})
    store.set(USER_COLLECTION, "user-2", {"name": "Bob"})
    reversed_ranking = list(reversed(COUNTRIES))
    store.set(RANKINGS_COLLECTION, "user-2", {"countries": reversed_ranking})

    body = client.get("/score", headers=AUTH).get_json()
    assert body["score"] == 9
    assert body["detailed"] == {country: 3 for country in COUNTRIES}
    names = [entry["name"] for entry in body["leaderboard"]]
    assert names == ["Alice", "Bob"]
    scores = [entry["score"] for entry in body["leaderboard"]]
    assert scores == sorted(scores, reverse=True)
    assert scores[1] == score_ranking(reversed_ranking, COUNTRIES)

    other = client.get("/score", headers={"Id-Token": "other"}).get_json()
    assert other["score"] == scores[1]


def test_lock_missing(client):
    assert client.get("/lock", headers=AUTH).status_code == 500


def test_lock_round_trip(client, store):
    response = client.post("/lock", headers=AUTH, json={"lock": True})
    assert response.get_json() is False
    assert store.get(LOCK_COLLECTION, LOCK_ID) == {"lock": True}
    assert client.get("/lock", headers=AUTH).get_json() == {"lock": True}


def test_lock_requires_login(client):
    assert client.post("/lock", json={"lock": True}).status_code == 401


def test_main_requires_client_id(monkeypatch):
    monkeypatch.delenv("CLIENT_ID", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2


def test_main_rejects_bad_port(monkeypatch):
    monkeypatch.setenv("CLIENT_ID", CLIENT_ID)
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2