"""
Settings for the autodetect package, loaded with Dynaconf.

Loading order (later wins):

- `autodetect/settings/defaults.py` - Defaults for every setting
- `autodetect/settings/{mode}.py` - Settings specific to the current `AUTODETECT_MODE`
  (`development`, `production` or `test`; defaults to `development`)
- the file named by `AUTODETECT_LOCAL_SETTINGS` - Host overrides (toml, yaml, json or py)
- `AUTODETECT_` prefixed environment variables

Settings are built on the first `get_settings()` call, never at import time,
so the mode can still be chosen after the package is imported.

To merge with previously defined setting use any Dynaconf merging markers,
e.g. in a mode file:

```python
LOGGING__loggers = {
    "dynaconf_merge": True,
    "autodetect.prober": {...}
}
```
"""
from __future__ import annotations

import importlib
import os
from pathlib import Path

from dynaconf import Dynaconf, Validator

SETTINGS_DIR = Path(__file__).resolve().parent
MODES = ("development", "production", "test")
DEFAULT_MODE = "development"

base_validators = [
    Validator("MIN_RANK", is_type_of=int, gte=0),
    Validator("ENABLED", "DISABLED", is_type_of=list),
    Validator("RANK_OVERRIDES", is_type_of=(dict, str)),
    Validator("RANK_FILE", "VIDEO_FILTER_CAPS", "AUDIO_FILTER_CAPS", is_type_of=str),
    Validator("LOGGING", is_type_of=dict),
]
"""Validators applied in every mode; mode files may add their own."""

_settings: Dynaconf | None = None


def current_mode() -> str:
    mode = os.environ.get("AUTODETECT_MODE", DEFAULT_MODE).strip().lower()
    if mode not in MODES:
        raise ValueError(
            f"Unknown AUTODETECT_MODE {mode!r}; expected one of {', '.join(MODES)}"
        )
    return mode


def build_settings(mode: str | None = None) -> Dynaconf:
    """Load a fresh settings object for ``mode`` (default: current mode)."""
    mode = mode or current_mode()
    mode_module = importlib.import_module(f"{__name__}.{mode}")

    settings_files = [
        str(SETTINGS_DIR / "defaults.py"),
        str(SETTINGS_DIR / f"{mode}.py"),
    ]
    local_settings = os.environ.get("AUTODETECT_LOCAL_SETTINGS")
    if local_settings:
        settings_files.append(local_settings)

    loaded = Dynaconf(
        envvar_prefix="AUTODETECT",
        settings_files=settings_files,
        validators=[*base_validators, *getattr(mode_module, "validators", [])],
    )
    loaded.validators.validate()
    return loaded


def get_settings() -> Dynaconf:
    global _settings
    if _settings is None:
        _settings = build_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access reloads them."""
    global _settings
    _settings = None
