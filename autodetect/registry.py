"""Candidate registry: discovery, loading, rank table and queries.

The registry supports three loading mechanisms:

1. **Entry-point candidates** (for pip-installed packages)::

       # In a driver package's pyproject.toml:
       [project.entry-points."autodetect.candidates"]
       v4l2src = "my_package.v4l2:V4l2Source"

2. **Runtime registration**: programmatic via ``registry.register()``

3. **Module scanning**: ``registry.load_module(module)`` to scan a
   module for BaseCandidate subclasses

Queries never cache: every call to ``query()`` reads the current
registrations, rank overrides and enable/disable lists, so a facade that
re-activates always sees what is registered *now*.
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Type

import yaml

from .base import BaseCandidate, CandidateDescriptor, Rank
from .errors import InstantiationError

logger = logging.getLogger("autodetect.registry")

# Entry point group name: external packages register under this group
ENTRY_POINT_GROUP = "autodetect.candidates"

TagPredicate = Callable[[frozenset], bool]


def parse_rank(value: Any) -> int:
    """
    Turn a rank given as an int, a digit string or a rank name into an int.

    Raises:
        ValueError: If the value is neither a number nor a known rank name.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid rank: {value!r}")
    if isinstance(value, int):
        return int(value)

    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return int(Rank[text.upper()])
    except KeyError:
        raise ValueError(
            f"Invalid rank {value!r}; expected an integer or one of "
            f"{', '.join(r.name.lower() for r in Rank)}"
        ) from None


def parse_rank_overrides(value: Any) -> dict[str, int]:
    """
    Parse rank overrides from a mapping or a ``"name:rank,name:rank"`` string.

    Example::

        parse_rank_overrides("v4l2src:none,ximagesrc:primary")
        # {"v4l2src": 0, "ximagesrc": 256}
    """
    if not value:
        return {}
    if isinstance(value, dict):
        return {str(name): parse_rank(rank) for name, rank in value.items()}

    overrides: dict[str, int] = {}
    for item in str(value).split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, rank = item.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid rank override {item!r}; expected 'name:rank'")
        overrides[name.strip()] = parse_rank(rank)
    return overrides


class CandidateRegistry:
    """
    Registry of candidate classes, keyed by candidate ``name``
    (e.g. 'v4l2src', 'ximagesrc', 'videotestsrc').

    A module-level default instance is provided as ``registry``; facades
    accept any instance so tests can inject synthetic candidate sets.
    """

    def __init__(self):
        self._candidates: dict[str, Type[BaseCandidate]] = {}
        self._rank_overrides: dict[str, int] = {}
        self._enabled: set[str] = set()
        self._disabled: set[str] = set()
        self._discovered = False

    @property
    def candidates(self) -> dict[str, Type[BaseCandidate]]:
        return dict(self._candidates)

    # ── Registration ──────────────────────────────────────────────────

    def register(self, candidate_class: Type[BaseCandidate]) -> None:
        """
        Register a candidate class.

        Args:
            candidate_class: A subclass of BaseCandidate with name and
                klass set.

        Raises:
            TypeError: If not a BaseCandidate subclass.
            ValueError: If name or klass is missing, or the class is a
                placeholder.
        """
        if not isinstance(candidate_class, type) or not issubclass(candidate_class, BaseCandidate):
            raise TypeError(f"{candidate_class} is not a BaseCandidate subclass")

        if not candidate_class.name or not candidate_class.klass:
            raise ValueError(
                f"{candidate_class.__name__} must set both 'name' and 'klass' class attributes"
            )
        if candidate_class.is_placeholder:
            raise ValueError(f"{candidate_class.__name__} is a placeholder and cannot be registered")

        name = candidate_class.name
        existing = self._candidates.get(name)
        if existing is not None and existing is not candidate_class:
            logger.warning(
                "Replacing candidate %s: %s → %s",
                name,
                existing.__name__,
                candidate_class.__name__,
            )

        self._candidates[name] = candidate_class
        logger.info("Registered candidate: %s (%s, rank %d)", name, candidate_class.__name__, candidate_class.rank)

    def unregister(self, name: str) -> bool:
        """Remove a candidate from the registry. Returns True if it existed."""
        if name in self._candidates:
            del self._candidates[name]
            logger.info("Unregistered candidate: %s", name)
            return True
        return False

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(self) -> None:
        """
        Load all candidates declared in the ``autodetect.candidates``
        entry point group.

        Safe to call multiple times.
        """
        if self._discovered:
            return

        self._discover_entrypoints()
        self._discovered = True

        logger.info(
            "Candidate discovery complete: %d candidates: %s",
            len(self._candidates),
            ", ".join(sorted(self._candidates.keys())) or "(none)",
        )

    def _discover_entrypoints(self) -> None:
        from importlib.metadata import entry_points

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                obj = ep.load()
                if isinstance(obj, type) and issubclass(obj, BaseCandidate):
                    self.register(obj)
                    logger.info("Loaded entry-point candidate: %s → %s", ep.name, obj.__name__)
                elif hasattr(obj, "__path__") or hasattr(obj, "__file__"):
                    # It's a module: scan for BaseCandidate subclasses
                    self.load_module(obj)
                else:
                    logger.warning(
                        "Entry point %s resolved to %s which is not a BaseCandidate subclass",
                        ep.name,
                        obj,
                    )
            except Exception:
                logger.exception("Failed to load entry-point candidate: %s", ep.name)

    def load_module(self, module) -> int:
        """
        Scan a Python module for BaseCandidate subclasses and register them.

        Args:
            module: A Python module object.

        Returns:
            Number of candidates registered from this module.
        """
        count = 0
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if (
                isinstance(obj, type)
                and issubclass(obj, BaseCandidate)
                and obj is not BaseCandidate
                and not obj.is_placeholder
                and obj.name
                and obj.klass
            ):
                self.register(obj)
                count += 1
        return count

    def load_class(self, dotted_path: str) -> Type[BaseCandidate]:
        """
        Import and register a candidate from a dotted Python path.

        Example::

            registry.load_class("my_package.v4l2.V4l2Source")

        Raises:
            ImportError: If the module cannot be imported.
            AttributeError: If the class doesn't exist in the module.
            TypeError: If the class is not a BaseCandidate subclass.
        """
        module_path, _, class_name = dotted_path.rpartition(".")
        if not module_path:
            raise ImportError(f"Invalid dotted path: {dotted_path}")

        module = importlib.import_module(module_path)
        cls = getattr(module, class_name)
        if not isinstance(cls, type) or not issubclass(cls, BaseCandidate):
            raise TypeError(f"{dotted_path} is not a BaseCandidate subclass")

        self.register(cls)
        return cls

    # ── Ranks and filtering ───────────────────────────────────────────

    def set_rank(self, name: str, rank: Any) -> None:
        """Override the declared rank of ``name`` for every later query."""
        self._rank_overrides[name] = parse_rank(rank)
        logger.info("Rank override: %s → %d", name, self._rank_overrides[name])

    def clear_rank(self, name: str) -> None:
        self._rank_overrides.pop(name, None)

    def effective_rank(self, name: str) -> int:
        if name in self._rank_overrides:
            return self._rank_overrides[name]
        return int(self._candidates[name].rank)

    def apply_filter(
        self,
        enabled: Iterable[str] | None = None,
        disabled: Iterable[str] | None = None,
    ) -> None:
        """
        Restrict queries by whitelist / blacklist of candidate names.

        Args:
            enabled: If set, only these names are ever returned (whitelist).
            disabled: These names are never returned (blacklist).
        """
        self._enabled = set(enabled or ())
        self._disabled = set(disabled or ())
        if self._enabled:
            logger.info("Candidates restricted to: %s", ", ".join(sorted(self._enabled)))
        if self._disabled:
            logger.info("Candidates disabled: %s", ", ".join(sorted(self._disabled)))

    def _is_enabled(self, name: str) -> bool:
        if self._enabled and name not in self._enabled:
            return False
        return name not in self._disabled

    def load_rank_table(self, path: Path | str) -> None:
        """
        Apply a YAML rank table.

        Expected layout::

            ranks:
              v4l2src: primary
              ximagesrc: 0
            enabled: []
            disabled:
              - dv1394src

        Missing sections leave the corresponding state untouched.
        """
        path = Path(path)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: rank table must be a mapping")

        for name, rank in parse_rank_overrides(data.get("ranks")).items():
            self.set_rank(name, rank)
        if "enabled" in data or "disabled" in data:
            self.apply_filter(
                enabled=data.get("enabled") or (),
                disabled=data.get("disabled") or (),
            )
        logger.info("Loaded rank table from %s", path)

    # ── Query ─────────────────────────────────────────────────────────

    def query(self, predicate: TagPredicate, min_rank: int) -> list[CandidateDescriptor]:
        """
        Return descriptors of every candidate whose tags satisfy
        ``predicate`` and whose effective rank is at least ``min_rank``.

        Pure read. The result carries no ordering guarantee; use
        ``ranking.sort_candidates`` for that.
        """
        found = []
        for name, cls in self._candidates.items():
            if cls.is_placeholder or not self._is_enabled(name):
                continue
            descriptor = cls.descriptor(rank=self.effective_rank(name))
            if descriptor.rank < min_rank or not predicate(descriptor.tags):
                continue
            found.append(descriptor)
        return found

    # ── Instantiation ─────────────────────────────────────────────────

    def create(self, descriptor: CandidateDescriptor, instance_name: str) -> BaseCandidate:
        """
        Create an instance of the candidate ``descriptor`` names.

        Raises:
            InstantiationError: If the candidate is no longer registered or
                its constructor raised.
        """
        cls = self._candidates.get(descriptor.name)
        if cls is None:
            raise InstantiationError(f"No candidate registered for '{descriptor.name}'")
        try:
            return cls(instance_name)
        except Exception as exc:
            raise InstantiationError(
                f"Could not create '{descriptor.name}' as '{instance_name}': {exc}"
            ) from exc

    # ── Listing ───────────────────────────────────────────────────────

    def list_candidates(self) -> list[dict[str, Any]]:
        """Return metadata about all registered candidates."""
        result = []
        for name, cls in sorted(self._candidates.items()):
            info = cls.metadata()
            info["rank"] = self.effective_rank(name)
            info["enabled"] = self._is_enabled(name)
            result.append(info)
        return result

    # ── Utility ───────────────────────────────────────────────────────

    def reset(self) -> None:
        """Clear the registry. Primarily for testing."""
        self._candidates.clear()
        self._rank_overrides.clear()
        self._enabled.clear()
        self._disabled.clear()
        self._discovered = False


# Module-level default instance
registry = CandidateRegistry()
