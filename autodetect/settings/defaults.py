"""
Defaults for every autodetect setting.

Mode files (``development.py``, ``production.py``, ``test.py``), an optional
local settings file and ``AUTODETECT_`` prefixed environment variables are
layered on top of these.

Example overrides:
    AUTODETECT_MIN_RANK=128
    AUTODETECT_DISABLED='["dv1394src"]'
    AUTODETECT_RANK_OVERRIDES="v4l2src:none,videotestsrc:primary"
"""

MIN_RANK = 64
"""Candidates ranked below this are never queried (64 = marginal)."""

ENABLED = []
"""Whitelist of candidate names. Empty means every registered candidate."""

DISABLED = []
"""Blacklist of candidate names."""

RANK_OVERRIDES = {}
"""Rank overrides, as a mapping or a ``"name:rank,name:rank"`` string."""

RANK_FILE = ""
"""Optional YAML rank table applied to the default registry."""

VIDEO_FILTER_CAPS = "video/x-raw-yuv; video/x-raw-rgb"
"""Default filter for AutoVideoSrc. Empty string disables filtering."""

AUDIO_FILTER_CAPS = "audio/x-raw-int; audio/x-raw-float"
"""Default filter for AutoAudioSrc. Empty string disables filtering."""

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "autodetect": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
"""Passed to logging.config.dictConfig by autodetect.log.configure_logging()."""
