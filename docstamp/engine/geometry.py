"""Geometry primitives for page layout calculations (PDF points)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Size:
    width: float
    height: float

    @property
    def half_diagonal(self) -> float:
        """Distance from the centre of the box to any of its corners."""
        return ((self.width / 2) ** 2 + (self.height / 2) ** 2) ** 0.5


@dataclass(slots=True, frozen=True)
class Margins:
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0

    @classmethod
    def uniform(cls, value: float) -> "Margins":
        return cls(value, value, value, value)

