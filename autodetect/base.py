"""Base classes and data contracts for autodetect candidates.

This module defines the candidate plugin interface. It has no dependency on
any host framework so that candidate authors can develop and test
implementations without the rest of the pipeline.

Candidate authors subclass ``BaseCandidate`` and implement three methods:
    - ``open()`` - acquire the device / backing resource (NULL -> READY)
    - ``close()`` - release it again (READY -> NULL)
    - ``create()`` - produce one buffer while streaming

The facade layer handles discovery, ranking, trial activation and binding;
a candidate only has to fail loudly when it cannot work.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Iterator

from .bus import Bus, Message, MessageType
from .caps import Caps
from .errors import CandidateError, ErrorDomain, FlowError, ResourceCode


# ── States and ranks ──────────────────────────────────────────────────


class Rank(IntEnum):
    """Autoplugging preference. Candidates below MARGINAL are never probed."""

    NONE = 0
    MARGINAL = 64
    SECONDARY = 128
    PRIMARY = 256


class State(IntEnum):
    NULL = 1
    READY = 2
    PAUSED = 3
    PLAYING = 4


class StateChange(Enum):
    NULL_TO_READY = (State.NULL, State.READY)
    READY_TO_PAUSED = (State.READY, State.PAUSED)
    PAUSED_TO_PLAYING = (State.PAUSED, State.PLAYING)
    PLAYING_TO_PAUSED = (State.PLAYING, State.PAUSED)
    PAUSED_TO_READY = (State.PAUSED, State.READY)
    READY_TO_NULL = (State.READY, State.NULL)

    @property
    def current(self) -> State:
        return self.value[0]

    @property
    def next(self) -> State:
        return self.value[1]

    @classmethod
    def between(cls, current: State, next_state: State) -> "StateChange":
        return cls((current, next_state))


class StateChangeReturn(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def iter_transitions(current: State, target: State) -> Iterator[StateChange]:
    """Yield the adjacent transitions leading from ``current`` to ``target``."""
    step = 1 if target > current else -1
    state = current
    while state != target:
        next_state = State(state + step)
        yield StateChange.between(state, next_state)
        state = next_state


# ── Data contracts ────────────────────────────────────────────────────


@dataclass(frozen=True)
class CandidateDescriptor:
    """
    Immutable snapshot of one registered candidate, taken at query time.

    ``rank`` is the effective rank: the class's declared rank unless the
    registry holds an override for ``name``.
    """

    name: str
    tags: frozenset[str]
    rank: int


class PortDirection(str, Enum):
    SRC = "src"
    SINK = "sink"


class OutputPort:
    """A candidate's data connection point; proxy endpoints target these."""

    def __init__(self, name: str, owner: "BaseCandidate", direction: PortDirection = PortDirection.SRC):
        self.name = name
        self.owner = owner
        self.direction = direction
        self.proxied_by: Any = None

    def get_caps(self) -> Caps:
        return self.owner.output_caps()

    def pull(self) -> bytes | None:
        if self.owner.state < State.PAUSED:
            raise FlowError(
                f"{self.owner.instance_name} is {self.owner.state.name}, not streaming"
            )
        return self.owner.create()

    def __repr__(self) -> str:
        return f"<OutputPort {self.owner.instance_name}:{self.name}>"


# ── Abstract base candidate ───────────────────────────────────────────


class BaseCandidate(ABC):
    """
    Abstract base class for autodetect candidates.

    Subclasses must set these class attributes:
        - ``name``   registry name, e.g. 'v4l2src', 'ximagesrc'
        - ``klass``  slash-separated family, e.g. 'Source/Video'
        - ``rank``   autoplugging rank (see ``Rank``)

    Subclasses must implement:
        - ``open()`` - acquire the backing resource
        - ``close()`` - release it; must not raise
        - ``create()`` - produce one buffer

    Optional overrides:
        - ``start()`` / ``stop()`` - READY <-> PAUSED hooks
        - ``output_caps()`` - if the declared output depends on the device
        - ``output_template`` - static declared output (default ANY)

    Example::

        class V4l2Source(BaseCandidate):
            name = "v4l2src"
            klass = "Source/Video"
            rank = Rank.PRIMARY
            output_template = Caps.from_string("video/x-raw-yuv; video/x-raw-rgb")

            def open(self):
                try:
                    self.fd = os.open("/dev/video0", os.O_RDWR)
                except FileNotFoundError as exc:
                    raise ResourceError(
                        "Cannot identify device '/dev/video0'.",
                        code=ResourceCode.NOT_FOUND,
                        debug=str(exc),
                    ) from exc

            def close(self):
                os.close(self.fd)

            def create(self):
                return os.read(self.fd, 4096)
    """

    # ── Subclass must set these ───────────────────────────────────────
    name: str = ""
    klass: str = ""
    rank: int = Rank.NONE
    display_name: str = ""
    description: str = ""
    output_template: Caps = Caps.new_any()
    is_placeholder: bool = False

    def __init__(self, instance_name: str):
        """
        Args:
            instance_name: Unique name of this instance inside its facade,
                used as the ``source`` of every message it posts.
        """
        self.instance_name = instance_name
        self.state = State.NULL
        self.bus: Bus | None = None
        self.parent: Any = None
        self.disposed = False
        self.src = OutputPort("src", self)
        self.logger = logging.getLogger(f"autodetect.candidates.{self.name or type(self).__name__}")

    # ── Abstract interface ────────────────────────────────────────────

    @abstractmethod
    def open(self) -> None:
        """Acquire the device or backing resource.

        Raise ``CandidateError`` (usually ``ResourceError``) on failure.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release everything ``open()`` acquired. Must not raise."""
        ...

    @abstractmethod
    def create(self) -> bytes | None:
        """Produce one buffer. Only called while PAUSED or PLAYING."""
        ...

    # ── Optional overrides ────────────────────────────────────────────

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def output_caps(self) -> Caps:
        return self.output_template

    # ── Bus ───────────────────────────────────────────────────────────

    def set_bus(self, bus: Bus | None) -> None:
        self.bus = bus

    def post_message(self, message: Message) -> None:
        if self.bus is None:
            self.logger.debug("No bus attached, dropping %s", message)
            return
        self.bus.post(message)

    def post_error(self, text: str, *, domain: ErrorDomain = ErrorDomain.RESOURCE,
                   code: str = ResourceCode.FAILED, debug: str = "") -> None:
        self.post_message(Message(MessageType.ERROR, self.instance_name, domain, code, text, debug))

    def post_warning(self, text: str, *, domain: ErrorDomain = ErrorDomain.RESOURCE,
                     code: str = ResourceCode.FAILED, debug: str = "") -> None:
        self.post_message(Message(MessageType.WARNING, self.instance_name, domain, code, text, debug))

    # ── State handling ────────────────────────────────────────────────

    def set_state(self, state: State) -> StateChangeReturn:
        """
        Synchronously walk from the current state to ``state``.

        Stops at the first failing transition; ``self.state`` is left at the
        last state actually reached.
        """
        for transition in iter_transitions(self.state, state):
            if self.change_state(transition) is StateChangeReturn.FAILURE:
                self.logger.debug(
                    "%s: %s failed", self.instance_name, transition.name
                )
                return StateChangeReturn.FAILURE
            self.state = transition.next
        return StateChangeReturn.SUCCESS

    def change_state(self, transition: StateChange) -> StateChangeReturn:
        hook = {
            StateChange.NULL_TO_READY: self.open,
            StateChange.READY_TO_PAUSED: self.start,
            StateChange.PAUSED_TO_READY: self.stop,
            StateChange.READY_TO_NULL: self.close,
        }.get(transition)
        if hook is None:
            return StateChangeReturn.SUCCESS

        try:
            hook()
        except CandidateError as exc:
            self.post_message(exc.to_message(self.instance_name))
            return StateChangeReturn.FAILURE
        except OSError as exc:
            self.post_error(
                f"Could not open resource: {exc.strerror or exc}",
                code=ResourceCode.OPEN_READ,
                debug=repr(exc),
            )
            return StateChangeReturn.FAILURE
        return StateChangeReturn.SUCCESS

    def dispose(self) -> None:
        """Drop every remaining reference. Safe to call more than once."""
        self.bus = None
        self.parent = None
        self.disposed = True

    # ── Metadata ──────────────────────────────────────────────────────

    @classmethod
    def tags(cls) -> frozenset[str]:
        return frozenset(part for part in cls.klass.split("/") if part)

    @classmethod
    def descriptor(cls, rank: int | None = None) -> CandidateDescriptor:
        return CandidateDescriptor(
            name=cls.name,
            tags=cls.tags(),
            rank=int(cls.rank if rank is None else rank),
        )

    @classmethod
    def metadata(cls) -> dict[str, Any]:
        """Return a metadata dict describing this candidate."""
        return {
            "name": cls.name,
            "klass": cls.klass,
            "rank": int(cls.rank),
            "display_name": cls.display_name or cls.name,
            "description": cls.description,
            "output_template": str(cls.output_template),
            "class": f"{cls.__module__}.{cls.__name__}",
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.instance_name} {self.state.name}>"


def release(candidate: BaseCandidate) -> None:
    """Drive ``candidate`` to NULL and drop every reference it holds."""
    if candidate.state != State.NULL:
        candidate.set_state(State.NULL)
    if candidate.state != State.NULL:
        candidate.logger.warning(
            "%s did not reach NULL, releasing it anyway", candidate.instance_name
        )
    candidate.set_bus(None)
    candidate.dispose()
