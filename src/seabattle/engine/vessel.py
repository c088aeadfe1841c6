"""Vessel domain model for the naval combat engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import (
    InvalidCoordinateError,
    InvalidLengthError,
    InvalidOrientationError,
    OutOfRangeError,
)

DEFAULT_VESSEL_NAME = "Unnamed Ship"

STANDARD_FLEET: tuple[tuple[str, int], ...] = (
    ("Carrier", 5),
    ("Battleship", 4),
    ("Destroyer", 3),
    ("Submarine", 3),
    ("Patrol Boat", 2),
)


@dataclass(frozen=True)
class Coordinate:
    """Immutable (row, col) grid coordinate, zero-indexed."""

    row: int
    col: int

    @classmethod
    def parse(cls, value: Any) -> Coordinate:
        """Coerce a ``Coordinate`` or a ``(row, col)`` pair of ints.

        Only the shape is checked here; whether the pair lies on a grid is
        decided by the board.
        """
        if isinstance(value, Coordinate):
            return value
        if not isinstance(value, (tuple, list)) or len(value) != 2:
            raise InvalidCoordinateError(f"Coordinate must be a (row, col) pair, got {value!r}.")
        row, col = value
        if not all(isinstance(part, int) and not isinstance(part, bool) for part in (row, col)):
            raise InvalidCoordinateError(f"Coordinate parts must be integers, got {value!r}.")
        return cls(row, col)

    def offset(self, orientation: Orientation, distance: int) -> Coordinate:
        """Return the coordinate ``distance`` cells further along ``orientation``."""
        if orientation is Orientation.HORIZONTAL:
            return Coordinate(self.row, self.col + distance)
        return Coordinate(self.row + distance, self.col)


class Orientation(Enum):
    """Allowed vessel orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: Any) -> Orientation:
        if isinstance(value, Orientation):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidOrientationError(
            f'Invalid orientation {value!r}. Use "horizontal" or "vertical".'
        )


@dataclass(frozen=True, eq=False)
class Vessel:
    """A single ship: a fixed number of segments, each hit at most once.

    Length and name are fixed at creation. Vessels compare by identity, so
    the same object can be looked up on the board it was placed on.
    """

    length: int
    name: str = DEFAULT_VESSEL_NAME
    _segments: list[bool] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.length, int) or isinstance(self.length, bool) or self.length < 1:
            raise InvalidLengthError(f"Vessel length must be greater than zero, got {self.length!r}.")
        object.__setattr__(self, "_segments", [False] * self.length)

    def hit(self, segment_index: int) -> bool:
        """Mark a segment as hit; return False if it was already hit."""
        if not 0 <= segment_index < self.length:
            raise OutOfRangeError(
                f"Segment {segment_index} is outside {self.name!r} (length {self.length})."
            )
        if self._segments[segment_index]:
            return False
        self._segments[segment_index] = True
        return True

    def is_sunk(self) -> bool:
        """True once every segment has been hit."""
        return all(self._segments)

    def hit_count(self) -> int:
        return sum(self._segments)

    def hit_segments(self) -> tuple[bool, ...]:
        """Return per-segment hit flags in bow-to-stern order."""
        return tuple(self._segments)

    def is_segment_hit(self, segment_index: int) -> bool:
        if not 0 <= segment_index < self.length:
            raise OutOfRangeError(
                f"Segment {segment_index} is outside {self.name!r} (length {self.length})."
            )
        return self._segments[segment_index]


def create_vessel(length: int, name: str | None = None) -> Vessel:
    """Build a fresh, undamaged vessel."""
    return Vessel(length, name if name is not None else DEFAULT_VESSEL_NAME)


def build_fleet(fleet: tuple[tuple[str, int], ...] = STANDARD_FLEET) -> list[Vessel]:
    """Create one vessel per ``(name, length)`` entry."""
    return [create_vessel(length, name) for name, length in fleet]
