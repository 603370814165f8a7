"""Deterministic ordering of candidates: highest rank first, then name descending."""
from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable

from .base import CandidateDescriptor


def compare_ranks(first: CandidateDescriptor, second: CandidateDescriptor) -> int:
    """Negative when ``first`` must be tried before ``second``."""
    diff = second.rank - first.rank
    if diff != 0:
        return diff
    if first.name == second.name:
        return 0
    # equal rank: "zsrc" before "asrc"
    return -1 if first.name > second.name else 1


def sort_candidates(candidates: Iterable[CandidateDescriptor]) -> list[CandidateDescriptor]:
    return sorted(candidates, key=cmp_to_key(compare_ranks))
