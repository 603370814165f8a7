"""Trial activation of ranked candidates.

The prober walks candidates in ranked order and, for each one:

1. instantiates it under a generated unique name,
2. drops it if its declared output cannot intersect the filter,
3. attaches a private bus,
4. drives it synchronously to READY,
5. returns it on success (left in READY, not linked to anything),
6. on failure drains the private bus into the shared error list, forces the
   candidate back to NULL, releases it and moves on.

Candidates are probed strictly one at a time: opening a device usually
means acquiring it exclusively, so two trial activations must never overlap.
A candidate whose open call hangs blocks the whole detection; there is no
timeout.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .base import BaseCandidate, CandidateDescriptor, State, StateChangeReturn, release
from .bus import Bus, Message, MessageType
from .caps import Caps
from .errors import InstantiationError
from .registry import CandidateRegistry

logger = logging.getLogger("autodetect.prober")


class ProbeResult(str, Enum):
    SUCCESS = "success"
    INSTANTIATION_FAILED = "instantiation-failed"
    CAPABILITY_MISMATCH = "capability-mismatch"
    STATE_TRANSITION_FAILED = "state-transition-failed"


@dataclass(frozen=True)
class ProbeOutcome:
    descriptor: CandidateDescriptor
    result: ProbeResult
    errors: tuple[Message, ...] = ()


@dataclass
class ProbeReport:
    """Everything one detection run learned, in ranked order."""

    candidate: BaseCandidate | None = None
    outcomes: list[ProbeOutcome] = field(default_factory=list)
    errors: list[Message] = field(default_factory=list)

    @property
    def first_error(self) -> Message | None:
        return self.errors[0] if self.errors else None

    @property
    def trial_activations(self) -> list[str]:
        """Names of the candidates that reached the state-change step."""
        return [
            o.descriptor.name
            for o in self.outcomes
            if o.result in (ProbeResult.SUCCESS, ProbeResult.STATE_TRANSITION_FAILED)
        ]


def instance_name_for(owner_name: str, role: str, candidate_name: str) -> str:
    """
    Build the name a candidate instance gets inside its facade.

    ``("autovideosrc0", "src", "gstv4l2src")`` -> ``"autovideosrc0-actual-src-v4l2"``
    """
    marker = candidate_name
    if marker.endswith(role) and len(marker) > len(role):
        marker = marker[: -len(role)]
    if marker.startswith("gst") and len(marker) > 3:
        marker = marker[3:]
    return f"{owner_name}-actual-{role}-{marker}"


class CandidateProber:
    def __init__(
        self,
        registry: CandidateRegistry,
        owner_name: str,
        role: str = "src",
        filter_caps: Caps | None = None,
    ):
        self.registry = registry
        self.owner_name = owner_name
        self.role = role
        self.filter_caps = filter_caps

    def probe(self, ranked: Iterable[CandidateDescriptor]) -> ProbeReport:
        """
        Trial-activate ``ranked`` candidates in order until one reaches READY.

        Returns:
            A report whose ``candidate`` is the winner (READY, no bus
            attached) or None, with every outcome and every recorded error.
        """
        report = ProbeReport()
        logger.debug("%s: trying to find a usable candidate ...", self.owner_name)

        for descriptor in ranked:
            outcome, candidate = self._try(descriptor)
            report.outcomes.append(outcome)
            report.errors.extend(outcome.errors)
            if candidate is not None:
                report.candidate = candidate
                break

        logger.debug(
            "%s: done trying (%d candidate(s), %d error(s))",
            self.owner_name, len(report.outcomes), len(report.errors),
        )
        return report

    def _try(self, descriptor: CandidateDescriptor) -> tuple[ProbeOutcome, BaseCandidate | None]:
        instance_name = instance_name_for(self.owner_name, self.role, descriptor.name)
        try:
            candidate = self.registry.create(descriptor, instance_name)
        except InstantiationError as exc:
            logger.debug("Skipping %s: %s", descriptor.name, exc)
            return ProbeOutcome(descriptor, ProbeResult.INSTANTIATION_FAILED), None

        logger.debug("Testing %s", descriptor.name)

        try:
            if self.filter_caps is not None:
                candidate_caps = candidate.output_caps()
                logger.debug("Checking caps: %s vs. %s", self.filter_caps, candidate_caps)
                if not self.filter_caps.can_intersect(candidate_caps):
                    logger.debug("Incompatible caps")
                    release(candidate)
                    return ProbeOutcome(descriptor, ProbeResult.CAPABILITY_MISMATCH), None
                logger.debug("Found compatible caps")

            bus = Bus()
            candidate.set_bus(bus)
            activated = candidate.set_state(State.READY) is StateChangeReturn.SUCCESS
        except BaseException:
            # broken candidate: release it, then let the bug surface
            release(candidate)
            raise

        if activated:
            logger.debug("%s: this worked!", descriptor.name)
            candidate.set_bus(None)
            return ProbeOutcome(descriptor, ProbeResult.SUCCESS), candidate

        errors = tuple(bus.drain(MessageType.ERROR))
        for message in errors:
            logger.debug("error message %s", message)

        release(candidate)
        return ProbeOutcome(descriptor, ProbeResult.STATE_TRANSITION_FAILED, errors), None
