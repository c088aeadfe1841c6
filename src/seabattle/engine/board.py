"""Single-combatant board management for the naval combat engine."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from seabattle.telemetry import get_meter, get_tracer

from .errors import AlreadyAttackedError, CollisionError, DuplicateVesselError, OutOfBoundsError
from .vessel import Coordinate, Orientation, Vessel

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.board")
meter = get_meter("seabattle.engine.board")

BOARD_SIZE = 10

PLACEMENT_COUNTER = meter.create_counter(
    "seabattle_engine_vessel_placements",
    unit="1",
    description="Number of attempted vessel placements",
)

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks_received",
    unit="1",
    description="Attacks resolved by a board",
)


@dataclass(frozen=True)
class EmptyCell:
    """Open water that has not been attacked."""


@dataclass(frozen=True)
class MissedCell:
    """Open water that has been attacked."""


@dataclass(frozen=True, eq=False)
class OccupiedCell:
    """One segment of a placed vessel; the hit flag lives on the vessel."""

    vessel: Vessel
    segment_index: int

    @property
    def is_hit(self) -> bool:
        return self.vessel.is_segment_hit(self.segment_index)


Cell: TypeAlias = EmptyCell | OccupiedCell | MissedCell

EMPTY = EmptyCell()
MISSED = MissedCell()


class CellState(Enum):
    """Display state of a cell, as shown to the board's owner."""

    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"


class AttackOutcome(Enum):
    """Result of a resolved attack."""

    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class VesselStatus:
    """Read-only summary of one placed vessel."""

    name: str
    length: int
    hits: tuple[bool, ...]
    sunk: bool


@dataclass(frozen=True)
class BoardSnapshot:
    """Immutable view of a board for rendering and comparison."""

    cells: tuple[tuple[CellState, ...], ...]
    missed: tuple[Coordinate, ...]
    vessels: tuple[VesselStatus, ...]

    def state_at(self, coord: Coordinate) -> CellState:
        return self.cells[coord.row][coord.col]


def _cell_state(cell: Cell) -> CellState:
    if isinstance(cell, MissedCell):
        return CellState.MISS
    if isinstance(cell, OccupiedCell):
        return CellState.HIT if cell.is_hit else CellState.SHIP
    return CellState.EMPTY


@dataclass
class Board:
    """Represents one combatant's 10×10 grid and the vessels placed on it."""

    owner: str = "unknown"
    _vessels: list[Vessel] = field(default_factory=list, init=False, repr=False)
    _cells: list[list[Cell]] = field(init=False, repr=False)
    _missed: list[Coordinate] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self._cells = [[EMPTY for _ in range(BOARD_SIZE)] for _ in range(BOARD_SIZE)]

    @property
    def vessels(self) -> tuple[Vessel, ...]:
        """Placed vessels in placement order."""
        return tuple(self._vessels)

    @property
    def size(self) -> int:
        return BOARD_SIZE

    def is_valid_coordinate(self, coord: Coordinate) -> bool:
        """Check whether a coordinate lies inside the board boundaries."""
        return 0 <= coord.row < BOARD_SIZE and 0 <= coord.col < BOARD_SIZE

    def _placement_run(
        self, vessel: Vessel, origin: Any, orientation: Any
    ) -> tuple[list[Coordinate], Orientation]:
        """Validate a placement; return the cells it would occupy and its orientation.

        Checks run in a fixed order: orientation, coordinate shape, bounds,
        collisions, then whether the vessel is already on this board.
        """
        if not isinstance(vessel, Vessel):
            raise TypeError(f"Expected a Vessel, got {type(vessel).__name__}.")
        resolved_orientation = Orientation.parse(orientation)
        start = Coordinate.parse(origin)
        run = [start.offset(resolved_orientation, index) for index in range(vessel.length)]

        for coord in run:
            if not self.is_valid_coordinate(coord):
                raise OutOfBoundsError(
                    f"Placement of {vessel.name!r} at ({start.row}, {start.col}) "
                    f"{resolved_orientation.value} leaves the board."
                )
        for coord in run:
            if not isinstance(self._cells[coord.row][coord.col], EmptyCell):
                raise CollisionError(
                    f"Placement of {vessel.name!r} collides at ({coord.row}, {coord.col})."
                )
        if any(placed is vessel for placed in self._vessels):
            raise DuplicateVesselError(f"{vessel.name!r} is already placed on this board.")
        return run, resolved_orientation

    def can_place(self, vessel: Vessel, origin: Any, orientation: Any) -> bool:
        """Non-raising probe for :meth:`place_vessel`."""
        try:
            self._placement_run(vessel, origin, orientation)
        except (ValueError, TypeError):
            return False
        return True

    def place_vessel(self, vessel: Vessel, origin: Any, orientation: Any) -> None:
        """Place a vessel; the board is left untouched if any check fails."""
        with tracer.start_as_current_span("board.place_vessel") as span:
            span.set_attribute("vessel.name", getattr(vessel, "name", "?"))
            span.set_attribute("vessel.length", getattr(vessel, "length", 0))
            span.set_attribute("board.owner", self.owner)
            try:
                run, resolved = self._placement_run(vessel, origin, orientation)
            except (ValueError, TypeError) as exc:
                span.record_exception(exc)
                PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
                logger.warning(
                    "vessel_placement_failed",
                    extra={
                        "owner": self.owner,
                        "vessel": getattr(vessel, "name", None),
                        "origin": repr(origin),
                        "orientation": repr(orientation),
                        "reason": type(exc).__name__,
                    },
                )
                raise

            for index, coord in enumerate(run):
                self._cells[coord.row][coord.col] = OccupiedCell(vessel, index)
            self._vessels.append(vessel)

            start = run[0]
            span.set_attribute("vessel.start.row", start.row)
            span.set_attribute("vessel.start.col", start.col)
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "vessel_placed",
                extra={
                    "owner": self.owner,
                    "vessel": vessel.name,
                    "length": vessel.length,
                    "row": start.row,
                    "col": start.col,
                    "orientation": resolved.name,
                },
            )

    def receive_attack(self, target: Any) -> AttackOutcome:
        """Resolve an incoming attack and return its outcome."""
        coord = Coordinate.parse(target)
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("attack.row", coord.row)
            span.set_attribute("attack.col", coord.col)
            span.set_attribute("board.owner", self.owner)
            if not self.is_valid_coordinate(coord):
                logger.error(
                    "attack_out_of_bounds",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                raise OutOfBoundsError(f"Attack at ({coord.row}, {coord.col}) is off the board.")

            cell = self._cells[coord.row][coord.col]
            if isinstance(cell, MissedCell) or (isinstance(cell, OccupiedCell) and cell.is_hit):
                logger.error(
                    "attack_duplicate",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                raise AlreadyAttackedError(
                    f"Cell ({coord.row}, {coord.col}) has already been attacked."
                )

            if isinstance(cell, OccupiedCell):
                # Unhit segment, checked above.
                cell.vessel.hit(cell.segment_index)
                span.set_attribute("attack.outcome", "hit")
                span.set_attribute("vessel.sunk", cell.vessel.is_sunk())
                ATTACK_COUNTER.add(1, attributes={"outcome": "hit", "owner": self.owner})
                logger.info(
                    "attack_hit",
                    extra={
                        "row": coord.row,
                        "col": coord.col,
                        "vessel": cell.vessel.name,
                        "sunk": cell.vessel.is_sunk(),
                        "owner": self.owner,
                    },
                )
                return AttackOutcome.HIT

            self._cells[coord.row][coord.col] = MISSED
            self._missed.append(coord)
            span.set_attribute("attack.outcome", "miss")
            ATTACK_COUNTER.add(1, attributes={"outcome": "miss", "owner": self.owner})
            logger.info(
                "attack_miss", extra={"row": coord.row, "col": coord.col, "owner": self.owner}
            )
            return AttackOutcome.MISS

    def cell_at(self, target: Any) -> Cell:
        coord = Coordinate.parse(target)
        if not self.is_valid_coordinate(coord):
            raise OutOfBoundsError(f"({coord.row}, {coord.col}) is off the board.")
        return self._cells[coord.row][coord.col]

    def cell_state(self, target: Any) -> CellState:
        return _cell_state(self.cell_at(target))

    def ship_at(self, target: Any) -> Vessel | None:
        """Return the vessel on a cell, or None for open water and off-board cells."""
        coord = Coordinate.parse(target)
        if not self.is_valid_coordinate(coord):
            return None
        cell = self._cells[coord.row][coord.col]
        return cell.vessel if isinstance(cell, OccupiedCell) else None

    def missed_attacks(self) -> tuple[Coordinate, ...]:
        """Missed attack coordinates in the order they happened."""
        return tuple(self._missed)

    def all_vessels_sunk(self) -> bool:
        """True when a fleet exists and every vessel in it is sunk."""
        return bool(self._vessels) and all(vessel.is_sunk() for vessel in self._vessels)

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            cells=tuple(tuple(_cell_state(cell) for cell in row) for row in self._cells),
            missed=tuple(self._missed),
            vessels=tuple(
                VesselStatus(
                    name=vessel.name,
                    length=vessel.length,
                    hits=vessel.hit_segments(),
                    sunk=vessel.is_sunk(),
                )
                for vessel in self._vessels
            ),
        )

    def placement_options(self, vessel: Vessel) -> list[tuple[Coordinate, Orientation]]:
        """Every (origin, orientation) at which ``vessel`` could be placed now."""
        return [
            (Coordinate(row, col), orientation)
            for orientation in Orientation
            for row in range(BOARD_SIZE)
            for col in range(BOARD_SIZE)
            if self.can_place(vessel, Coordinate(row, col), orientation)
        ]

    def place_fleet_randomly(self, vessels: list[Vessel], rng: random.Random) -> None:
        """Place each vessel at a random position chosen among those that fit.

        Vessels already on the board stay where they are. Raises when a
        vessel has nowhere left to go; vessels placed before it remain.
        """
        with tracer.start_as_current_span("board.place_fleet_randomly") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("fleet.size", len(vessels))
            for vessel in vessels:
                if any(placed is vessel for placed in self._vessels):
                    raise DuplicateVesselError(f"{vessel.name!r} is already placed on this board.")
                if vessel.length > BOARD_SIZE:
                    raise OutOfBoundsError(f"{vessel.name!r} is longer than the board.")
                options = self.placement_options(vessel)
                if not options:
                    logger.warning(
                        "random_placement_exhausted",
                        extra={"vessel": vessel.name, "owner": self.owner},
                    )
                    raise CollisionError(f"No free run of {vessel.length} cells for {vessel.name!r}.")
                origin, orientation = rng.choice(options)
                self.place_vessel(vessel, origin, orientation)
                logger.debug(
                    "random_vessel_placed",
                    extra={"vessel": vessel.name, "options": len(options), "owner": self.owner},
                )
