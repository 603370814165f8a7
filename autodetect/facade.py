"""The autodetecting facade.

``AutoDetect`` looks like a single source to the outside: one stable
``endpoint`` and the usual state machine. Going from NULL to READY runs
detection (query, rank, probe, select) and binds the winner behind the
endpoint; going back to NULL tears it down again and puts a placeholder in
its place. Every other transition is handed to whatever is bound.

Subclasses choose the family they look for through class attributes::

    class AutoVideoSrc(AutoDetect):
        klass_tags = frozenset({"Source", "Video"})
        media = "video"
        filter_caps_setting = "VIDEO_FILTER_CAPS"
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from .base import (
    BaseCandidate,
    State,
    StateChange,
    StateChangeReturn,
    iter_transitions,
    release,
)
from .bus import Bus, Message, MessageType
from .caps import Caps
from .errors import DetectionError, ErrorDomain, LibraryCode, ResourceCode, TargetError
from .placeholder import FakeSource
from .prober import CandidateProber, ProbeReport
from .proxy import ProxyBinding, ProxyEndpoint
from .ranking import sort_candidates
from .registry import CandidateRegistry
from .selection import Decision, Selection, select
from .settings import get_settings

logger = logging.getLogger("autodetect.facade")

MessageHandler = Callable[[Message], None]

_DEFAULT = object()


class LifecyclePhase(str, Enum):
    INACTIVE = "inactive"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"


class AutoDetect:
    """
    Facade binding the best working candidate of one family.

    Args:
        name: Instance name; prefixes the names of probed candidates and is
            the ``source`` of messages the facade posts itself.
        registry: Registry to query. Defaults to the settings-configured
            default registry.
        min_rank: Lowest rank considered. Defaults to ``MIN_RANK``.
        filter_caps: Initial capability filter, ``None`` for no filter.
            Defaults to the setting named by ``filter_caps_setting``.
    """

    klass_tags: frozenset[str] = frozenset({"Source"})
    role: str = "src"
    media: str = "media"
    filter_caps_setting: str = ""
    placeholder_class: type[FakeSource] = FakeSource

    def __init__(
        self,
        name: str,
        registry: CandidateRegistry | None = None,
        min_rank: int | None = None,
        filter_caps=_DEFAULT,
    ):
        if registry is None:
            from .bootstrap import get_registry

            registry = get_registry()

        self.name = name
        self.registry = registry
        self.min_rank = get_settings().MIN_RANK if min_rank is None else min_rank
        self.state = State.NULL
        self.phase = LifecyclePhase.INACTIVE
        self.messages: list[Message] = []
        self.last_report: ProbeReport | None = None
        self._message_handlers: list[MessageHandler] = []

        self._child_bus = Bus(sync_handler=self.post_message)
        self._binding = ProxyBinding(self, self._child_bus, self._make_placeholder)
        self.filter_caps = self.default_filter_caps() if filter_caps is _DEFAULT else filter_caps

    # ── Public surface ────────────────────────────────────────────────

    @property
    def endpoint(self) -> ProxyEndpoint:
        return self._binding.endpoint

    @property
    def kid(self) -> BaseCandidate:
        """The currently bound component (a real candidate or the placeholder)."""
        return self._binding.kid

    @property
    def filter_caps(self) -> Caps | None:
        return self._binding.filter_caps

    @filter_caps.setter
    def filter_caps(self, caps: Caps | None) -> None:
        self._binding.filter_caps = caps

    def default_filter_caps(self) -> Caps | None:
        if not self.filter_caps_setting:
            return None
        text = get_settings().get(self.filter_caps_setting, "")
        return Caps.from_string(text) if text else None

    def candidate_filter(self, tags: frozenset[str]) -> bool:
        return self.klass_tags <= tags

    def activate(self) -> StateChangeReturn:
        return self.set_state(State.READY)

    def deactivate(self) -> StateChangeReturn:
        return self.set_state(State.NULL)

    def dispose(self) -> None:
        if self.state != State.NULL:
            self.deactivate()
        if self._binding.has_candidate:
            # deactivation stopped half way; drop the candidate regardless
            self._binding.reset()
            self.state = State.NULL
            self.phase = LifecyclePhase.INACTIVE
        self.filter_caps = None
        self._message_handlers.clear()

    # ── Messages ──────────────────────────────────────────────────────

    def add_message_handler(self, handler: MessageHandler) -> None:
        self._message_handlers.append(handler)

    def post_message(self, message: Message) -> None:
        self.messages.append(message)
        if message.type is MessageType.ERROR:
            logger.error("%s: %s", self.name, message)
        elif message.type is MessageType.WARNING:
            logger.warning("%s: %s", self.name, message)
        else:
            logger.info("%s: %s", self.name, message)
        for handler in list(self._message_handlers):
            handler(message)

    @property
    def errors(self) -> list[Message]:
        return [m for m in self.messages if m.type is MessageType.ERROR]

    @property
    def warnings(self) -> list[Message]:
        return [m for m in self.messages if m.type is MessageType.WARNING]

    # ── State handling ────────────────────────────────────────────────

    def set_state(self, state: State) -> StateChangeReturn:
        """
        Walk from the current state to ``state``.

        Raises:
            DetectionError: Every eligible candidate failed to activate.
            TargetError: The endpoint refused the chosen candidate.
        """
        for transition in iter_transitions(self.state, state):
            if self.change_state(transition) is StateChangeReturn.FAILURE:
                return StateChangeReturn.FAILURE
            self.state = transition.next
        return StateChangeReturn.SUCCESS

    def change_state(self, transition: StateChange) -> StateChangeReturn:
        if transition is StateChange.NULL_TO_READY:
            self._detect()
            return StateChangeReturn.SUCCESS
        if transition is StateChange.READY_TO_NULL:
            self._reset()
            return StateChangeReturn.SUCCESS

        ret = self.kid.set_state(transition.next)
        if ret is StateChangeReturn.FAILURE:
            logger.debug("%s: %s failed in %r", self.name, transition.name, self.kid)
        return ret

    # ── Detection ─────────────────────────────────────────────────────

    def _detect(self) -> None:
        self.phase = LifecyclePhase.ACTIVATING
        try:
            # free the previous device before probing for a new one
            self._binding.reset()

            ranked = sort_candidates(self.registry.query(self.candidate_filter, self.min_rank))
            logger.debug(
                "%s: %d candidate(s): %s",
                self.name, len(ranked), ", ".join(d.name for d in ranked) or "(none)",
            )
            prober = CandidateProber(self.registry, self.name, self.role, self._binding.filter_caps)
            self.last_report = prober.probe(ranked)
            self._apply(select(self.last_report))
        except Exception:
            self.phase = LifecyclePhase.INACTIVE
            raise
        self.phase = LifecyclePhase.ACTIVE

    def _apply(self, selection: Selection) -> None:
        if selection.decision is Decision.BIND:
            candidate = selection.candidate
            try:
                self._binding.bind(candidate)
            except TargetError as exc:
                release(candidate)
                self.post_message(
                    Message(
                        type=MessageType.ERROR,
                        source=self.name,
                        domain=ErrorDomain.LIBRARY,
                        code=LibraryCode.INIT,
                        text="Failed to set target pad",
                        debug=str(exc),
                    )
                )
                raise
            logger.info("%s: using %s", self.name, candidate.instance_name)
            return

        if selection.decision is Decision.ERROR:
            self.post_message(selection.error)
            raise DetectionError(selection.error)

        self.post_message(
            Message(
                type=MessageType.WARNING,
                source=self.name,
                domain=ErrorDomain.RESOURCE,
                code=ResourceCode.NOT_FOUND,
                text=f"Failed to find a usable {self.media} source",
            )
        )
        placeholder = self._make_placeholder(f"fake-{self.media}-{self.role}", sync=True)
        placeholder.set_state(State.READY)
        self._binding.bind(placeholder)

    def _reset(self) -> None:
        self.phase = LifecyclePhase.DEACTIVATING
        # release() drives the previous kid to NULL exactly once
        self._binding.reset()
        self.phase = LifecyclePhase.INACTIVE

    def _make_placeholder(self, instance_name: str, sync: bool = False) -> FakeSource:
        return self.placeholder_class(instance_name, sync=sync)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self.state.name} -> {self.kid!r}>"
