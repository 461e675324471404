"""Quota slots claimed through store-enforced uniqueness."""

from __future__ import annotations

from collections.abc import Iterable


def first_free_slot(used: Iterable[int], limit: int) -> int | None:
    """Return the lowest slot in ``range(limit)`` not in ``used``, or None when full.

    Writers insert a row carrying the returned slot under a unique key, so two
    writers that read the same state pick the same slot and only one commits.
    """
    taken = set(used)
    for slot in range(limit):
        if slot not in taken:
            return slot
    return None
