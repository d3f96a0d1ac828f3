"""Scoring of user rankings against the final result."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from escranking.store import RANKINGS_COLLECTION, USER_COLLECTION, DocumentStore, StoreError

MAX_COUNTRY_SCORE = 3
DEFAULT_COUNTRIES_PATH = "countries.json"


@dataclass
class EndResult:
    """The final ordering of countries and whether it is complete."""

    done: bool
    countries: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EndResult:
        return cls(done=bool(data["done"]), countries=list(data["countries"]))

    def to_dict(self) -> dict[str, Any]:
        return {"done": self.done, "countries": list(self.countries)}


@dataclass(frozen=True)
class LeaderboardEntry:
    """A user's display name and total score."""

    name: str
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": self.score}


@dataclass
class Score:
    """A user's score, per-country breakdown and the overall leaderboard."""

    score: int
    detailed: dict[str, int]
    leaderboard: list[LeaderboardEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "detailed": dict(self.detailed),
            "leaderboard": [entry.to_dict() for entry in self.leaderboard],
        }


def load_countries(path: str | os.PathLike[str] = DEFAULT_COUNTRIES_PATH) -> list[str]:
    """Read the default country order from a JSON array of strings."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"{os.fspath(path)} must hold a JSON array of strings")
    return data


def country_score(index: int, end_index: int) -> int:
    """Points for placing a country at ``index`` when it finished at ``end_index``."""
    return max(0, MAX_COUNTRY_SCORE - abs(index - end_index))


def _score_items(
    countries: Iterable[str], end_countries: Sequence[str]
) -> Iterator[tuple[str, int]]:
    positions: dict[str, int] = {}
    for position, country in enumerate(end_countries):
        positions.setdefault(country, position)
    for index, country in enumerate(countries):
        try:
            end_index = positions[country]
        except KeyError:
            raise ValueError(f"{country!r} is not in the end result") from None
        yield country, country_score(index, end_index)


def score_ranking(countries: Iterable[str], end_countries: Sequence[str]) -> int:
    """Total points of a ranking against the end result."""
    return sum(score for _, score in _score_items(countries, end_countries))


def detailed_score(countries: Iterable[str], end_countries: Sequence[str]) -> dict[str, int]:
    """Points per country of a ranking against the end result."""
    return dict(_score_items(countries, end_countries))


def _user_countries(
    store: DocumentStore, user_id: str, default_countries: Sequence[str]
) -> list[str]:
    try:
        ranking = store.get(RANKINGS_COLLECTION, user_id)
    except StoreError:
        ranking = None
    countries = ranking.get("countries") if ranking is not None else None
    if isinstance(countries, list) and all(isinstance(c, str) for c in countries):
        return countries
    return list(default_countries)


def calculate_leaderboard(
    store: DocumentStore, end_result: EndResult, default_countries: Sequence[str]
) -> list[LeaderboardEntry]:
    """Score every user and return the entries, highest score first."""
    entries = []
    for user_id in store.list_ids(USER_COLLECTION):
        user = store.get(USER_COLLECTION, user_id)
        if user is None:
            raise LookupError(f"user {user_id!r} not found")
        countries = _user_countries(store, user_id, default_countries)
        entries.append(
            LeaderboardEntry(name=user["name"], score=score_ranking(countries, end_result.countries))
        )
    entries.sort(key=lambda entry: entry.score, reverse=True)
    return entries