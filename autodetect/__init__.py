"""autodetect: bind the best available provider of a capability family.

A facade queries the registry for every candidate of its family, ranks
them, trial-activates each in turn and binds the first one that reaches
READY behind a stable endpoint.

For candidate authors:

    from autodetect import BaseCandidate, Caps, Rank, ResourceError, ResourceCode

    class V4l2Source(BaseCandidate):
        name = "v4l2src"
        klass = "Source/Video"
        rank = Rank.PRIMARY
        output_template = Caps.from_string("video/x-raw-yuv")

        def open(self): ...
        def close(self): ...
        def create(self): ...

Register via entry point in your package's pyproject.toml::

    [project.entry-points."autodetect.candidates"]
    v4l2src = "my_package.v4l2:V4l2Source"

For hosts (consumer):

    from autodetect import AutoVideoSrc, DetectionError

    source = AutoVideoSrc("autovideosrc0")
    try:
        source.activate()
    except DetectionError as exc:
        print(exc.message)
    buffer = source.endpoint.pull()
    source.deactivate()
"""

from .base import (
    BaseCandidate,
    CandidateDescriptor,
    Rank,
    State,
    StateChange,
    StateChangeReturn,
)
from .bus import Bus, Message, MessageType
from .caps import Caps
from .elements import AutoAudioSrc, AutoVideoSrc
from .errors import (
    AutodetectError,
    CandidateError,
    DetectionError,
    ErrorDomain,
    FilterLockedError,
    InstantiationError,
    LibraryCode,
    LibraryError,
    ResourceCode,
    ResourceError,
    TargetError,
)
from .facade import AutoDetect, LifecyclePhase
from .placeholder import FakeSource
from .registry import CandidateRegistry, registry

__all__ = [
    "AutoAudioSrc",
    "AutoDetect",
    "AutoVideoSrc",
    "AutodetectError",
    "BaseCandidate",
    "Bus",
    "CandidateDescriptor",
    "CandidateError",
    "CandidateRegistry",
    "Caps",
    "DetectionError",
    "ErrorDomain",
    "FakeSource",
    "FilterLockedError",
    "InstantiationError",
    "LibraryCode",
    "LibraryError",
    "LifecyclePhase",
    "Message",
    "MessageType",
    "Rank",
    "ResourceCode",
    "ResourceError",
    "State",
    "StateChange",
    "StateChangeReturn",
    "TargetError",
    "registry",
]

__version__ = "0.1.0"
