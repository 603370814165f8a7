"""
Testing environment overrides
Inherits from ./defaults.py and adds test-specific settings
"""

# Keep records away from the console; they still propagate to pytest's caplog
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "loggers": {
        "autodetect": {
            "handlers": ["null"],
            "level": "DEBUG",
            "propagate": True,
        },
    },
}
