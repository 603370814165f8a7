"""Inert stand-in bound whenever no real candidate is."""
from __future__ import annotations

from .base import BaseCandidate


class FakeSource(BaseCandidate):
    """
    Produces empty buffers and never fails a state change.

    It is never registered, so registry queries, ranking and probing never
    see it.
    """

    name = "fakesrc"
    klass = "Source"
    display_name = "Fake Source"
    description = "Push empty (no data) buffers around"
    is_placeholder = True

    def __init__(self, instance_name: str, sync: bool = False):
        super().__init__(instance_name)
        self.sync = sync

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def create(self) -> bytes:
        return b""
