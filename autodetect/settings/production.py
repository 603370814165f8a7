"""
Production environment settings.

This file is loaded when AUTODETECT_MODE=production and serves two purposes:

1. SET PRODUCTION-APPROPRIATE DEFAULTS
   Autoplugging must never pick candidates without a real rank.

2. VALIDATE IMPORTANT SETTINGS
   Each critical setting has a corresponding Dynaconf Validator that runs
   when the settings are first loaded. A misconfigured host fails fast with
   a clear message instead of probing the wrong devices.

Validators are registered in autodetect/settings/__init__.py.
"""

from dynaconf import Validator

validators = []

MIN_RANK = 64
validators.append(
    Validator(
        "MIN_RANK",
        gte=64,
        messages={"operations": "MIN_RANK must be at least 64 (marginal) in production."},
    ),
)

RANK_FILE = ""
validators.append(
    Validator(
        "RANK_FILE",
        condition=lambda v: not v or v.endswith((".yml", ".yaml")),
        messages={"condition": "RANK_FILE must point to a .yml/.yaml file."},
    ),
)
