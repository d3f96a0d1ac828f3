"""HTTP API for rankings, users and the lock, and for scores."""

from __future__ import annotations

import argparse
import json
import logging
import os
from collections.abc import Callable, Sequence
from typing import Any

from flask import Flask, Response, request

from escranking.auth import AuthError, Claims, fetch_keys, verify_login
from escranking.scoring import (
    DEFAULT_COUNTRIES_PATH,
    EndResult,
    Score,
    calculate_leaderboard,
    detailed_score,
    load_countries,
    score_ranking,
)
from escranking.store import (
    ENDRESULT_COLLECTION,
    ENDRESULT_ID,
    LOCK_COLLECTION,
    LOCK_ID,
    RANKINGS_COLLECTION,
    USER_COLLECTION,
    DocumentStore,
    FirestoreStore,
    StoreError,
)

PROJECT_ID = "esc2025"

Verifier = Callable[[str, str], Claims]


def _google_verifier(id_token: str, client_id: str) -> Claims:
    return verify_login(id_token, client_id, fetch_keys())


def _json(data: Any) -> Response:
    return Response(json.dumps(data), mimetype="application/json")


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _body_field(name: str, check: Callable[[Any], bool]) -> Any:
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not check(body.get(name)):
        return None
    return body[name]


def create_app(
    store: DocumentStore,
    client_id: str,
    verifier: Verifier | None = None,
    countries_path: str | os.PathLike[str] = DEFAULT_COUNTRIES_PATH,
) -> Flask:
    """Build the Flask application serving the ranking API."""
    verify = verifier or _google_verifier
    app = Flask(__name__)

    def login() -> Claims:
        id_token = request.headers.get("Id-Token")
        if not id_token:
            raise AuthError("missing Id-Token header")
        return verify(id_token, client_id)

    def ranking_countries(user_id: str) -> list[str]:
        try:
            countries = (store.get(RANKINGS_COLLECTION, user_id) or {}).get("countries")
        except StoreError:
            countries = None
        return countries if _is_string_list(countries) else load_countries(countries_path)

    @app.errorhandler(AuthError)
    def _unauthorized(exc: AuthError) -> Response:
        return Response(str(exc), status=401, mimetype="text/plain")

    @app.post("/ranking")
    def post_ranking() -> Response:
        claims = login()
        countries = _body_field("countries", _is_string_list)
        if countries is None:
            return Response("bad request", status=400)
        store.set(RANKINGS_COLLECTION, claims.sub, {"countries": countries})
        return Response(status=200)

    @app.get("/ranking")
    def get_ranking() -> Response:
        return _json({"countries": ranking_countries(login().sub)})

    @app.post("/user")
    def post_user() -> Response:
        claims = login()
        name = _body_field("name", lambda v: isinstance(v, str))
        if name is None:
            return Response("bad request", status=400)
        store.set(USER_COLLECTION, claims.sub, {"name": name})
        return Response(status=200)

    @app.get("/user")
    def get_user() -> Response:
        user = store.get(USER_COLLECTION, login().sub)
        if user is None:
            return Response(status=404)
        return _json({"name": user["name"]})

    @app.get("/score")
    def get_score() -> Response:
        claims = login()
        document = store.get(ENDRESULT_COLLECTION, ENDRESULT_ID)
        if document is None:
            return Response("ranking not found", status=500)
        end_result = EndResult.from_dict(document)
        if not end_result.done:
            return Response(status=404)

        countries = ranking_countries(claims.sub)
        score = Score(
            score=score_ranking(countries, end_result.countries),
            detailed=detailed_score(countries, end_result.countries),
            leaderboard=calculate_leaderboard(store, end_result, load_countries(countries_path)),
        )
        return _json(score.to_dict())

    @app.get("/lock")
    def get_lock() -> Response:
        login()
        lock = store.get(LOCK_COLLECTION, LOCK_ID)
        if lock is None:
            return Response("lock not found", status=500)
        return _json({"lock": bool(lock["lock"])})

    @app.post("/lock")
    def post_lock() -> Response:
        login()
        lock = _body_field("lock", lambda v: isinstance(v, bool))
        if lock is None:
            return Response("bad request", status=400)
        store.set(LOCK_COLLECTION, LOCK_ID, {"lock": lock})
        return _json(False)

    @app.get("/health")
    def health() -> Response:
        return Response("OK", mimetype="text/plain")

    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Start the API server, configured from PORT and CLIENT_ID."""
    parser = argparse.ArgumentParser(description="Serve the ranking API.")
    parser.add_argument("--countries", default=DEFAULT_COUNTRIES_PATH)
    args = parser.parse_args(argv)

    port = int(os.environ.get("PORT", "8080"))
    client_id = os.environ["CLIENT_ID"]

    logging.basicConfig(level=logging.INFO)
    store = FirestoreStore(PROJECT_ID, access_token=os.environ.get("FIRESTORE_ACCESS_TOKEN"))
    app = create_app(store, client_id, countries_path=args.countries)
    print(f"Starting esc-api on port {port}...")
    app.run(host="0.0.0.0", port=port)
    return 0