"""Fuzzy name matching.

Generated text refers to characters loosely: "JANE", "Dr. Jane Doe",
"Jane's", "Jnae". Every place the pipeline turns a free-text name into an
entity (speaker labels, tag targets, faction names) goes through
names_match() so the rules stay identical everywhere.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TypeVar


class Named(Protocol):
    name: str


N = TypeVar("N", bound=Named)


def edit_distance(a: str, b: str) -> int:
    """Classic Levenshtein distance with unit insert/delete/substitute cost."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (0 if ca == cb else 1),
            ))
        previous = current
    return previous[-1]


def names_match(name: str, candidate: str) -> bool:
    """Return True if `candidate` plausibly refers to the canonical `name`.

    Case-insensitive. First, the canonical name is split on spaces; if at
    most half (rounded down) of its words are missing from the candidate
    text, it's a match. This tolerates titles, partial names and
    reordering. Otherwise fall back to edit distance, which must be
    strictly below half the length of the shorter string.
    """
    name = name.lower()
    candidate = candidate.lower()

    parts = name.split(" ")
    missing = [part for part in parts if part not in candidate]
    if len(missing) <= len(parts) // 2:
        return True

    return edit_distance(name, candidate) < min(len(name) / 2, len(candidate) / 2)


def find_best_name_match(candidate: str, entities: Iterable[N]) -> N | None:
    """Return the first entity whose name matches `candidate`, or None.

    Declaration order decides: the first good-enough match wins, even if a
    later entity would be a closer one.
    """
    for entity in entities:
        if names_match(entity.name, candidate):
            return entity
    return None
