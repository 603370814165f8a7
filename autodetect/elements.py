"""Ready-made facades for the common source families."""
from __future__ import annotations

from .facade import AutoDetect


class AutoVideoSrc(AutoDetect):
    """Wrapper video source for the automatically detected video source."""

    display_name = "Auto video source"
    klass_tags = frozenset({"Source", "Video"})
    media = "video"
    filter_caps_setting = "VIDEO_FILTER_CAPS"


class AutoAudioSrc(AutoDetect):
    """Wrapper audio source for the automatically detected audio source."""

    display_name = "Auto audio source"
    klass_tags = frozenset({"Source", "Audio"})
    media = "audio"
    filter_caps_setting = "AUDIO_FILTER_CAPS"
