from __future__ import annotations

from collections.abc import Sequence

"""Category matcher: suggest a catalog category for free-text input.

Case-insensitive exact match wins outright. Otherwise the catalog entry with
the smallest Levenshtein distance is suggested, but only when that distance
is below MAX_SUGGESTION_DISTANCE; a wrong guess is worse than leaving the row
uncategorised. Equal distances resolve to the earliest catalog entry, so the
catalog must arrive in a stable order (``Catalogs`` sorts it by name).
"""

__all__ = [
    "MAX_SUGGESTION_DISTANCE",
    "levenshtein",
    "suggest",
]

# Exclusive upper bound: distances 0, 1 and 2 produce a suggestion
MAX_SUGGESTION_DISTANCE = 3


def levenshtein(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance (insert/delete/substitute)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def suggest(value: str | None, catalog: Sequence[str]) -> str | None:
    """Return the catalog name ``value`` most likely refers to, or None."""
    if not value or not value.strip():
        return None
    needle = value.strip().lower()

    for name in catalog:
        if name.lower() == needle:
            return name

    best: str | None = None
    best_distance = MAX_SUGGESTION_DISTANCE
    for name in catalog:
        distance = levenshtein(needle, name.lower())
        if distance < best_distance:  # strict: first minimum wins
            best = name
            best_distance = distance
    return best
