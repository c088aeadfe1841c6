"""Combatants: owners of a board that attack other combatants' boards."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from seabattle.telemetry import get_meter, get_tracer

from .board import BOARD_SIZE, AttackOutcome, Board
from .errors import (
    InvalidCoordinateError,
    InvalidKindError,
    InvalidNameError,
    InvalidOpponentError,
    TargetsExhaustedError,
)
from .vessel import Coordinate, Vessel

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.combatant")
meter = get_meter("seabattle.engine.combatant")

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks_launched",
    unit="1",
    description="Attacks launched by combatants",
)


class RandomSource(Protocol):
    """Anything that can draw an integer in ``[0, stop)``."""

    def randrange(self, stop: int) -> int: ...


class CombatantKind(Enum):
    """Who chooses a combatant's targets."""

    CONTROLLED = "controlled"
    AUTONOMOUS = "autonomous"

    @classmethod
    def _missing_(cls, value: object) -> CombatantKind | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            aliases = {"human": cls.CONTROLLED, "computer": cls.AUTONOMOUS}
            if normalized in aliases:
                return aliases[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> CombatantKind:
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidKindError(
                f'Invalid combatant kind {value!r}. Use "controlled" or "autonomous".'
            ) from exc


@dataclass(frozen=True)
class AttackResult:
    """Where an attack landed and what it did."""

    coordinate: Coordinate
    outcome: AttackOutcome
    vessel: Vessel | None = None

    @property
    def hit(self) -> bool:
        return self.outcome is AttackOutcome.HIT

    @property
    def sunk(self) -> bool:
        return self.vessel is not None and self.vessel.is_sunk()


class Combatant:
    """A participant owning one board and able to attack another."""

    def __init__(
        self,
        display_name: str,
        kind: CombatantKind | str = CombatantKind.CONTROLLED,
        rng: RandomSource | None = None,
    ) -> None:
        if not isinstance(display_name, str) or not display_name.strip():
            raise InvalidNameError("Combatant name must be a non-empty string.")
        self._display_name = display_name
        self._kind = CombatantKind.parse(kind)
        self._rng: RandomSource = rng if rng is not None else random.Random()
        self.board = Board(owner=display_name)
        self._targeted: set[Coordinate] = set()

    def __repr__(self) -> str:
        return f"Combatant({self._display_name!r}, {self._kind.value})"

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def kind(self) -> CombatantKind:
        return self._kind

    @property
    def is_autonomous(self) -> bool:
        return self._kind is CombatantKind.AUTONOMOUS

    def targeted(self) -> frozenset[Coordinate]:
        """Coordinates this combatant has already chosen to attack."""
        return frozenset(self._targeted)

    def place_vessel(self, vessel: Vessel, coordinate: Any, orientation: Any) -> None:
        self.board.place_vessel(vessel, coordinate, orientation)

    def attack(self, opponent: Combatant, coordinate: Any = None) -> AttackResult:
        """Attack ``opponent``'s board.

        Controlled combatants must supply ``coordinate``; autonomous ones
        ignore it and draw an untargeted cell at random. Board errors
        propagate unchanged.
        """
        if not isinstance(opponent, Combatant):
            raise InvalidOpponentError(f"Cannot attack {opponent!r}: not a combatant.")

        if self.is_autonomous:
            target = self._choose_target()
        else:
            if coordinate is None:
                raise InvalidCoordinateError(
                    f"{self._display_name} must supply a (row, col) coordinate to attack."
                )
            target = Coordinate.parse(coordinate)

        with tracer.start_as_current_span("combatant.attack") as span:
            span.set_attribute("attacker", self._display_name)
            span.set_attribute("attacker.kind", self._kind.value)
            span.set_attribute("defender", opponent.display_name)
            span.set_attribute("attack.row", target.row)
            span.set_attribute("attack.col", target.col)

            self._targeted.add(target)
            outcome = opponent.board.receive_attack(target)
            vessel = opponent.board.ship_at(target) if outcome is AttackOutcome.HIT else None
            result = AttackResult(target, outcome, vessel)

            span.set_attribute("attack.outcome", outcome.value)
            span.set_attribute("vessel.sunk", result.sunk)
            ATTACK_COUNTER.add(1, attributes={"kind": self._kind.value, "outcome": outcome.value})
            if result.sunk:
                logger.info(
                    "vessel_sunk",
                    extra={
                        "attacker": self._display_name,
                        "defender": opponent.display_name,
                        "vessel": vessel.name,
                    },
                )
            return result

    def _choose_target(self) -> Coordinate:
        if len(self._targeted) >= BOARD_SIZE * BOARD_SIZE:
            raise TargetsExhaustedError(f"{self._display_name} has targeted every cell.")
        draws = 0
        while True:
            draws += 1
            candidate = Coordinate(self._rng.randrange(BOARD_SIZE), self._rng.randrange(BOARD_SIZE))
            if candidate not in self._targeted:
                logger.debug(
                    "autonomous_target_chosen",
                    extra={
                        "attacker": self._display_name,
                        "row": candidate.row,
                        "col": candidate.col,
                        "draws": draws,
                    },
                )
                return candidate


def create_combatant(
    display_name: str,
    kind: CombatantKind | str,
    rng: RandomSource | None = None,
) -> Combatant:
    """Build a combatant with an empty board."""
    return Combatant(display_name, kind, rng=rng)
