"""Interactive editor for the final country ordering."""

from __future__ import annotations

import argparse
import os
from collections.abc import Iterator, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.validation import Validator

from escranking.scoring import DEFAULT_COUNTRIES_PATH, EndResult, load_countries
from escranking.store import ENDRESULT_COLLECTION, ENDRESULT_ID, FirestoreStore


def _char_bonus(text: str, position: int) -> int:
    if position == 0:
        return 8
    previous, current = text[position - 1], text[position]
    if not previous.isalnum() and current.isalnum():
        return 8
    if previous.islower() and current.isupper():
        return 7
    return 0


def fuzzy_score(choice: str, pattern: str) -> int | None:
    """Score ``pattern`` as a fuzzy subsequence of ``choice``; None if it does not match.

    Matching is case-insensitive unless the pattern holds an upper-case letter.
    """
    if not pattern:
        return 0
    sensitive = any(ch.isupper() for ch in pattern)
    haystack = choice if sensitive else choice.lower()
    needle = pattern if sensitive else pattern.lower()

    best: dict[int, int] = {}
    for step, wanted in enumerate(needle):
        current: dict[int, int] = {}
        for position, ch in enumerate(haystack):
            if ch != wanted:
                continue
            gain = 16 + _char_bonus(choice, position)
            if step == 0:
                current[position] = gain
                continue
            prior = [
                score + (4 if position - end == 1 else -1 - (position - end))
                for end, score in best.items()
                if end < position
            ]
            if prior:
                current[position] = max(prior) + gain
        if not current:
            return None
        best = current
    return max(best.values())


class CountryHelper:
    """Validates and completes country names against a fixed list."""

    def __init__(self, countries: Sequence[str]):
        self.countries = list(countries)

    def validate(self, text: str) -> bool:
        """True if ``text`` is exactly one of the countries."""
        return text in self.countries

    def completion(self, text: str) -> str | None:
        """The best fuzzy match for ``text``, or None if nothing scores above zero."""
        suggestion, high_score = None, 0
        for country in self.countries:
            score = fuzzy_score(country, text)
            if score is not None and score > high_score:
                suggestion, high_score = country, score
        return suggestion


class _CountryCompleter(Completer):
    def __init__(self, helper: CountryHelper):
        self._helper = helper

    def get_completions(self, document, complete_event) -> Iterator[Completion]:
        text = document.text_before_cursor
        suggestion = self._helper.completion(text)
        if suggestion is not None:
            yield Completion(suggestion, start_position=-len(text))


def move_country(ranking: Sequence[str], country: str, position: int) -> list[str]:
    """Return a copy of ``ranking`` with ``country`` moved to the 1-based ``position``."""
    result = list(ranking)
    if country not in result:
        raise ValueError(f"{country!r} is not in the ranking")
    result.remove(country)
    if not 1 <= position <= len(result) + 1:
        raise ValueError(f"position must be between 1 and {len(result) + 1}")
    result.insert(position - 1, country)
    return result


def format_ranking(ranking: Sequence[str]) -> str:
    """Numbered lines, one country per line, starting at 1."""
    return "\n".join(f"{number}: {country}" for number, country in enumerate(ranking, 1))


def main(argv: Sequence[str] | None = None) -> int:
    """Edit the end result interactively, saving after every move."""
    parser = argparse.ArgumentParser(description="Edit the final country ordering.")
    parser.add_argument("--countries", default=DEFAULT_COUNTRIES_PATH)
    parser.add_argument("--project", default="esc2025")
    args = parser.parse_args(argv)

    store = FirestoreStore(args.project, access_token=os.environ.get("FIRESTORE_ACCESS_TOKEN"))
    document = store.get(ENDRESULT_COLLECTION, ENDRESULT_ID)
    ranking = (
        EndResult.from_dict(document).countries
        if document is not None
        else load_countries(args.countries)
    )
    print(format_ranking(ranking))

    helper = CountryHelper(ranking)
    country_validator = Validator.from_callable(helper.validate, error_message="Unknown country")
    position_validator = Validator.from_callable(
        lambda text: text.strip().isdigit() and 1 <= int(text) <= len(ranking),
        error_message=f"Enter a number between 1 and {len(ranking)}",
    )
    session: PromptSession[str] = PromptSession()

    while True:
        try:
            country = session.prompt(
                "Country: ", completer=_CountryCompleter(helper), validator=country_validator
            )
            position = int(session.prompt("Position: ", validator=position_validator))
        except (EOFError, KeyboardInterrupt):
            return 0

        ranking = move_country(ranking, country, position)
        print(format_ranking(ranking))
        store.set(
            ENDRESULT_COLLECTION,
            ENDRESULT_ID,
            EndResult(done=False, countries=ranking).to_dict(),
        )