"""Exception hierarchy and error domains for the autodetect core.

Per-candidate failures (a device that cannot be opened, a driver that is
busy) are contained by the prober and only escalate in aggregate: when
nothing could be activated, the *first* recorded error is re-raised as a
``DetectionError``. Wiring problems inside the facade surface as
``TargetError`` and are never confused with device errors.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .bus import Message


class ErrorDomain(str, Enum):
    CORE = "core"
    LIBRARY = "library"
    RESOURCE = "resource"
    STREAM = "stream"


class ResourceCode:
    FAILED = "failed"
    NOT_FOUND = "not-found"
    BUSY = "busy"
    OPEN_READ = "open-read"
    OPEN_WRITE = "open-write"
    OPEN_READ_WRITE = "open-read-write"
    SETTINGS = "settings"
    NO_SPACE_LEFT = "no-space-left"


class LibraryCode:
    FAILED = "failed"
    INIT = "init"
    SETTINGS = "settings"


class AutodetectError(Exception):
    """Base class for every error raised by this package."""


class CandidateError(AutodetectError):
    """
    Raised from a candidate's lifecycle hooks to report a runtime failure.

    ``BaseCandidate.change_state`` turns it into an error ``Message`` on the
    candidate's bus and reports the transition as failed; it never escapes
    ``set_state``.
    """

    domain: ErrorDomain = ErrorDomain.CORE
    default_code: str = "failed"

    def __init__(self, text: str, *, code: str | None = None, debug: str = ""):
        super().__init__(text)
        self.text = text
        self.code = code or self.default_code
        self.debug = debug

    def to_message(self, source: str) -> "Message":
        from .bus import Message, MessageType

        return Message(
            type=MessageType.ERROR,
            source=source,
            domain=self.domain,
            code=self.code,
            text=self.text,
            debug=self.debug,
        )


class ResourceError(CandidateError):
    """Device absent, busy, or not accessible."""

    domain = ErrorDomain.RESOURCE
    default_code = ResourceCode.FAILED


class LibraryError(CandidateError):
    """A backing library failed to initialise or was misconfigured."""

    domain = ErrorDomain.LIBRARY
    default_code = LibraryCode.FAILED


class InstantiationError(AutodetectError):
    """A registered candidate could not be created."""


class DetectionError(AutodetectError):
    """
    Every eligible candidate failed its trial activation.

    ``message`` is the first error recorded during probing, re-surfaced
    verbatim (earliest-ranked candidate, first error it posted).
    """

    def __init__(self, message: "Message"):
        super().__init__(message.text)
        self.message = message


class TargetError(AutodetectError):
    """The proxy endpoint could not be re-targeted to the chosen component."""


class FilterLockedError(AutodetectError):
    """The capability filter cannot change while a candidate is bound."""


class FlowError(AutodetectError):
    """Data was pulled through a port whose owner is not streaming."""
