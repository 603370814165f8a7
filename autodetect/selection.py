"""Turn a probe report into a decision.

- a candidate reached READY              -> bind it
- nothing did, but errors were recorded  -> fail with the *first* error
- nothing was even eligible              -> warn and fall back to a placeholder

Only the first error is re-surfaced, never the most severe or the most
specific one: a failure across several candidates reads exactly like the
failure of the earliest-ranked one.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .base import BaseCandidate
from .bus import Message
from .prober import ProbeReport


class Decision(str, Enum):
    BIND = "bind"
    ERROR = "error"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Selection:
    decision: Decision
    candidate: BaseCandidate | None = None
    error: Message | None = None


def select(report: ProbeReport) -> Selection:
    if report.candidate is not None:
        return Selection(Decision.BIND, candidate=report.candidate)
    if report.errors:
        return Selection(Decision.ERROR, error=report.first_error)
    return Selection(Decision.FALLBACK)
