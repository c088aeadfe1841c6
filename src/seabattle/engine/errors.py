"""Exceptions raised by the naval combat engine."""

from __future__ import annotations


class SeaBattleError(ValueError):
    """Base class for every recoverable engine error."""


class InvalidLengthError(SeaBattleError):
    """Vessel created with a length below one."""


class OutOfRangeError(SeaBattleError):
    """Segment index outside a vessel's segments."""


class InvalidNameError(SeaBattleError):
    """Combatant display name is empty or not a string."""


class InvalidKindError(SeaBattleError):
    """Combatant kind is not a recognised value."""


class InvalidOrientationError(SeaBattleError):
    """Orientation is neither horizontal nor vertical."""


class InvalidCoordinateError(SeaBattleError):
    """Coordinate is missing or not a pair of integers."""


class OutOfBoundsError(SeaBattleError):
    """Coordinate, or part of a placement run, lies outside the grid."""


class CollisionError(SeaBattleError):
    """Placement run overlaps an occupied cell."""


class DuplicateVesselError(SeaBattleError):
    """The same vessel is already placed on this board."""


class AlreadyAttackedError(SeaBattleError):
    """The targeted cell was resolved by an earlier attack."""


class InvalidOpponentError(SeaBattleError):
    """Attack or game call given no usable combatant."""


class TargetsExhaustedError(SeaBattleError):
    """An autonomous combatant has no untargeted cell left."""


class GamePhaseError(SeaBattleError):
    """Game operation called in the wrong phase."""
