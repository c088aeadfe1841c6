"""Game-state engine: vessels, boards and the combatants that own them."""

from .board import (
    BOARD_SIZE,
    AttackOutcome,
    Board,
    BoardSnapshot,
    CellState,
    EmptyCell,
    MissedCell,
    OccupiedCell,
)
from .combatant import AttackResult, Combatant, CombatantKind, create_combatant
from .errors import (
    AlreadyAttackedError,
    CollisionError,
    DuplicateVesselError,
    GamePhaseError,
    InvalidCoordinateError,
    InvalidKindError,
    InvalidLengthError,
    InvalidNameError,
    InvalidOpponentError,
    InvalidOrientationError,
    OutOfBoundsError,
    OutOfRangeError,
    SeaBattleError,
    TargetsExhaustedError,
)
from .game import Game, GamePhase, GameState
from .vessel import STANDARD_FLEET, Coordinate, Orientation, Vessel, build_fleet, create_vessel

__all__ = [
    "BOARD_SIZE",
    "STANDARD_FLEET",
    "AlreadyAttackedError",
    "AttackOutcome",
    "AttackResult",
    "Board",
    "BoardSnapshot",
    "CellState",
    "CollisionError",
    "Combatant",
    "CombatantKind",
    "Coordinate",
    "DuplicateVesselError",
    "EmptyCell",
    "Game",
    "GamePhase",
    "GamePhaseError",
    "GameState",
    "InvalidCoordinateError",
    "InvalidKindError",
    "InvalidLengthError",
    "InvalidNameError",
    "InvalidOpponentError",
    "InvalidOrientationError",
    "MissedCell",
    "OccupiedCell",
    "Orientation",
    "OutOfBoundsError",
    "OutOfRangeError",
    "SeaBattleError",
    "TargetsExhaustedError",
    "Vessel",
    "build_fleet",
    "create_combatant",
    "create_vessel",
]
