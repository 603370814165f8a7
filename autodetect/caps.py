"""Capability descriptors.

A ``Caps`` value describes the output formats a candidate can produce, or
the formats a facade is willing to accept. The selection core treats it as
opaque: it only ever asks whether two values can intersect, copies them,
and compares them for equality.

String form::

    ANY
    EMPTY
    video/x-raw-yuv; video/x-raw-rgb
    video/x-raw-yuv, format=I420, width=640

Structures are separated by ``;``. Each structure is a media type followed
by optional ``field=value`` pairs. Two structures intersect when their media
types are equal and every field present in both carries the same value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Structure:
    """One media type with optional fixed fields."""

    media_type: str
    fields: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @classmethod
    def from_string(cls, text: str) -> "Structure":
        parts = [p.strip() for p in text.split(",") if p.strip()]
        if not parts:
            raise ValueError(f"Empty caps structure: {text!r}")

        media_type = parts[0]
        if "=" in media_type:
            raise ValueError(f"Caps structure must start with a media type: {text!r}")

        fields: dict[str, str] = {}
        for part in parts[1:]:
            key, sep, value = part.partition("=")
            if not sep or not key.strip():
                raise ValueError(f"Malformed caps field {part!r} in {text!r}")
            value = value.strip()
            # Drop a type annotation such as "(string)I420"
            if value.startswith("(") and ")" in value:
                value = value.split(")", 1)[1].strip()
            fields[key.strip()] = value

        return cls(media_type, tuple(sorted(fields.items())))

    def can_intersect(self, other: "Structure") -> bool:
        if self.media_type != other.media_type:
            return False
        mine = dict(self.fields)
        for key, value in other.fields:
            if key in mine and mine[key] != value:
                return False
        return True

    def intersect(self, other: "Structure") -> "Structure | None":
        if not self.can_intersect(other):
            return None
        merged = dict(self.fields)
        merged.update(other.fields)
        return Structure(self.media_type, tuple(sorted(merged.items())))

    def __str__(self) -> str:
        if not self.fields:
            return self.media_type
        rendered = ", ".join(f"{k}={v}" for k, v in self.fields)
        return f"{self.media_type}, {rendered}"


class Caps:
    """Immutable set of acceptable formats.

    Use ``Caps.new_any()`` for "anything", ``Caps.new_empty()`` for
    "nothing", or ``Caps.from_string()`` for an explicit list.
    """

    __slots__ = ("_structures", "_any")

    def __init__(self, structures: Iterable[Structure] = (), any_format: bool = False):
        self._any = any_format
        self._structures: tuple[Structure, ...] = () if any_format else tuple(structures)

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def new_any(cls) -> "Caps":
        return cls(any_format=True)

    @classmethod
    def new_empty(cls) -> "Caps":
        return cls()

    @classmethod
    def from_string(cls, text: str) -> "Caps":
        """
        Parse the string form described in the module docstring.

        Raises:
            ValueError: If a structure is malformed.
        """
        stripped = text.strip()
        if stripped.upper() == "ANY":
            return cls.new_any()
        if not stripped or stripped.upper() == "EMPTY":
            return cls.new_empty()
        return cls(
            Structure.from_string(chunk)
            for chunk in stripped.split(";")
            if chunk.strip()
        )

    # ── Queries ───────────────────────────────────────────────────────

    @property
    def is_any(self) -> bool:
        return self._any

    @property
    def is_empty(self) -> bool:
        return not self._any and not self._structures

    @property
    def structures(self) -> tuple[Structure, ...]:
        return self._structures

    def can_intersect(self, other: "Caps") -> bool:
        """Return True if at least one format is acceptable to both sides."""
        if self.is_empty or other.is_empty:
            return False
        if self._any or other._any:
            return True
        return any(
            mine.can_intersect(theirs)
            for mine in self._structures
            for theirs in other._structures
        )

    def intersect(self, other: "Caps") -> "Caps":
        if self.is_empty or other.is_empty:
            return Caps.new_empty()
        if self._any:
            return other.copy()
        if other._any:
            return self.copy()

        result: list[Structure] = []
        for mine in self._structures:
            for theirs in other._structures:
                merged = mine.intersect(theirs)
                if merged is not None and merged not in result:
                    result.append(merged)
        return Caps(result)

    def copy(self) -> "Caps":
        return Caps(self._structures, any_format=self._any)

    # ── Dunder ────────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Caps):
            return NotImplemented
        return self._any == other._any and self._structures == other._structures

    def __hash__(self) -> int:
        return hash((self._any, self._structures))

    def __str__(self) -> str:
        if self._any:
            return "ANY"
        if not self._structures:
            return "EMPTY"
        return "; ".join(str(s) for s in self._structures)

    def __repr__(self) -> str:
        return f"<Caps {self}>"
