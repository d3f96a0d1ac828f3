# escranking

A small web service behind a song contest prediction game. Players sign in
with a Google ID token, submit their predicted ranking of the competing
countries, and once the final result is marked as done they receive a score
and see where they stand on a leaderboard. An admin console lets an
organiser enter the official result as it comes in.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
escranking-server [--countries PATH]
```

The server runs on Flask's built-in server and listens on all interfaces.
Configuration comes from the environment:

- `PORT`: the port to listen on (default `8080`)
- `CLIENT_ID`: the OAuth client ID that incoming ID tokens must be issued
  for (required)
- `FIRESTORE_ACCESS_TOKEN`: an OAuth access token sent as a bearer token to
  the Firestore REST API of project `esc2025` (optional)

`--countries` names the JSON file holding the default ranking, an array of
country names (default `countries.json` in the working directory). It is
used for any player who has not saved a ranking of their own.

### Endpoints

Every endpoint except `/health` expects the caller's Google ID token in the
`Id-Token` request header. A missing or rejected token is answered with
401. The signing keys are downloaded from Google on each request, and a
token must be RS256-signed for `CLIENT_ID` by `accounts.google.com`.

| Method | Path       | Purpose                                                  |
|--------|------------|----------------------------------------------------------|
| GET    | `/health`  | Liveness check, answers `OK`                             |
| GET    | `/user`    | The caller's display name `{"name": ...}`, or 404 if none is set |
| POST   | `/user`    | Set the caller's display name: `{"name": "..."}`         |
| GET    | `/ranking` | The caller's ranking `{"countries": [...]}`, or the default ranking |
| POST   | `/ranking` | Save the caller's ranking: `{"countries": [...]}`        |
| GET    | `/score`   | The caller's score, per-country breakdown and leaderboard; 404 until the result is done |
| GET    | `/lock`    | The lock flag: `{"lock": true}`                          |
| POST   | `/lock`    | Set the lock flag: `{"lock": true}`; answers `false`     |

POST bodies of the wrong shape are answered with 400. `/score` answers 500
when no end result is stored, and `/lock` answers 500 when no lock is stored.
The lock is only stored and reported; the server does not refuse rankings
while it is set.

### Scoring

For each country, a prediction earns `3` points minus the distance between
its predicted place and its place in the end result, never less than zero.
An exact hit is worth 3, one place off is worth 2, and so on. A ranking that
names a country missing from the end result is an error. The leaderboard
lists every player who has set a display name, highest score first.

## Entering the result

```
escranking-admin [--countries PATH] [--project PROJECT]
```

The console reads the end result from Firestore project `PROJECT` (default
`esc2025`, using `FIRESTORE_ACCESS_TOKEN` like the server), or falls back to
the list in `--countries` (default `countries.json`) when none is stored. It
prints the ranking, then repeatedly asks for a country, with fuzzy
completion of the single best match, and the 1-based position it should
move to. After each move the ranking is printed and saved with `done` set to
false. End the session with Ctrl-D or Ctrl-C.

## Using it as a library

- `escranking.scoring`: `country_score`, `score_ranking`, `detailed_score`,
  `calculate_leaderboard`, `load_countries`, and the `EndResult`,
  `LeaderboardEntry` and `Score` dataclasses.
- `escranking.store`: the `DocumentStore` interface (`get`, `set`,
  `list_ids`) with `MemoryStore` and `FirestoreStore` implementations;
  failures of the Firestore backend raise `StoreError`.
- `escranking.auth`: `fetch_keys`, `verify_login` returning `Claims`, and
  `AuthError`.
- `escranking.app.create_app(store, client_id, verifier, countries_path)`
  builds the Flask application. A `MemoryStore` and a verifier callable
  `(id_token, client_id) -> Claims` can be plugged in for local use.
- `escranking.cli`: `CountryHelper`, `fuzzy_score`, `move_country` and
  `format_ranking`.

## What it does not do

`FirestoreStore` talks to the Firestore REST API with whatever access token
it is given; it does not obtain or refresh Google credentials itself.
Documents may hold only booleans, integers, strings, lists and mappings. The
server has no production WSGI setup of its own; `escranking-server` runs
Flask's development server.