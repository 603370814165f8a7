"""
Development environment overrides
Inherits from ./defaults.py and adds dev-specific defaults
"""

LOGGING__loggers__autodetect__level = "DEBUG"
LOGGING__loggers = {
    "dynaconf_merge": True,
    "autodetect.bus": {
        "handlers": ["console"],
        "level": "INFO",
        "propagate": False,
    },
}
