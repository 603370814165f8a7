"""Shared fixtures: synthetic candidates and an isolated registry."""

import os

os.environ["AUTODETECT_MODE"] = "test"

import pytest

from autodetect import bootstrap
from autodetect.base import BaseCandidate, Rank
from autodetect.caps import Caps
from autodetect.errors import ResourceCode, ResourceError
from autodetect.registry import CandidateRegistry
from autodetect.settings import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from the test-mode settings, with no host overrides."""
    for key in list(os.environ):
        if key.startswith("AUTODETECT_") and key != "AUTODETECT_MODE":
            monkeypatch.delenv(key)
    monkeypatch.setenv("AUTODETECT_MODE", "test")
    reset_settings()
    bootstrap.reset_registry()
    yield
    reset_settings()
    bootstrap.reset_registry()


@pytest.fixture
def registry():
    return CandidateRegistry()


@pytest.fixture
def journal():
    """Ordered record of ``(event, instance_name)`` pairs from synthetic candidates."""
    return []


@pytest.fixture
def make_candidate(journal):
    """
    Build a candidate class.

    ``errors`` lists the texts the candidate reports when opened: all but the
    last are posted, the last one is raised. An empty tuple means open works.
    """

    def factory(
        candidate_name,
        rank=Rank.PRIMARY,
        klass="Source/Video",
        caps=None,
        errors=(),
        code=ResourceCode.NOT_FOUND,
        broken=False,
    ):
        class Candidate(BaseCandidate):
            def __init__(self, instance_name):
                if broken:
                    raise RuntimeError("no such driver")
                super().__init__(instance_name)
                journal.append(("init", instance_name))

            def open(self):
                journal.append(("open", self.instance_name))
                if errors:
                    for text in errors[:-1]:
                        self.post_error(text, code=code)
                    raise ResourceError(errors[-1], code=code)

            def close(self):
                journal.append(("close", self.instance_name))

            def create(self):
                return candidate_name.encode()

        Candidate.__name__ = Candidate.__qualname__ = f"Candidate_{candidate_name}"
        Candidate.name = candidate_name
        Candidate.klass = klass
        Candidate.rank = rank
        if caps is not None:
            Candidate.output_template = Caps.from_string(caps)
        return Candidate

    return factory


def opened(journal):
    """Instance names that were trial-activated, in order."""
    return [name for event, name in journal if event == "open"]
