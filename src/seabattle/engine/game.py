"""Two-combatant game controller driving the engine's placement and play phases."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any

from seabattle.telemetry import get_tracer, record_game_metric

from .board import BoardSnapshot
from .combatant import AttackResult, Combatant
from .errors import GamePhaseError, InvalidOpponentError
from .vessel import STANDARD_FLEET, Vessel, build_fleet

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.game")


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    PLACEMENT = "placement"
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current game."""

    phase: GamePhase
    current: str
    winner: str | None
    boards: tuple[BoardSnapshot, ...]
    turns: int


class Game:
    """Sequences placement and alternating attacks between two combatants.

    Turn order lives here rather than on the combatants. A turn whose attack
    raises is not consumed, so the same combatant moves again.
    """

    def __init__(
        self,
        first: Combatant,
        second: Combatant,
        fleet: tuple[tuple[str, int], ...] = STANDARD_FLEET,
        rng_seed: int | None = None,
    ) -> None:
        if not isinstance(first, Combatant) or not isinstance(second, Combatant):
            raise InvalidOpponentError("A game needs two combatants.")
        if first is second:
            raise InvalidOpponentError("A combatant cannot play against itself.")
        self.combatants: tuple[Combatant, Combatant] = (first, second)
        self.fleet = fleet
        self.phase: GamePhase = GamePhase.PLACEMENT
        self.current: Combatant = first
        self.winner: Combatant | None = None
        self.turns = 0
        self._rng = random.Random(rng_seed)

    @property
    def opponent(self) -> Combatant:
        first, second = self.combatants
        return second if self.current is first else first

    def _require_phase(self, phase: GamePhase) -> None:
        if self.phase is not phase:
            logger.error(
                "game_wrong_phase",
                extra={"expected": phase.value, "phase": self.phase.value},
            )
            raise GamePhaseError(f"Game is in {self.phase.value}, expected {phase.value}.")

    def _require_member(self, combatant: Combatant) -> None:
        if not any(combatant is member for member in self.combatants):
            raise InvalidOpponentError(f"{combatant!r} is not part of this game.")

    def place_vessel(self, combatant: Combatant, vessel: Vessel, coordinate: Any, orientation: Any) -> None:
        self._require_phase(GamePhase.PLACEMENT)
        self._require_member(combatant)
        combatant.place_vessel(vessel, coordinate, orientation)

    def place_fleet_randomly(self, combatant: Combatant) -> list[Vessel]:
        """Build the configured fleet and scatter it over ``combatant``'s board."""
        self._require_phase(GamePhase.PLACEMENT)
        self._require_member(combatant)
        vessels = build_fleet(self.fleet)
        combatant.board.place_fleet_randomly(vessels, self._rng)
        logger.debug("game_random_placement", extra={"board_owner": combatant.display_name})
        return vessels

    def start(self) -> None:
        """Leave the placement phase once both boards hold a fleet."""
        self._require_phase(GamePhase.PLACEMENT)
        for combatant in self.combatants:
            if not combatant.board.vessels:
                raise GamePhaseError(f"{combatant.display_name} has not placed any vessels.")
        self.phase = GamePhase.PLAYING
        self.current = self.combatants[0]
        logger.info(
            "game_started",
            extra={"phase": self.phase.value, "current_player": self.current.display_name},
        )

    def play_turn(self, coordinate: Any = None) -> AttackResult:
        """Let the current combatant attack; pass the turn or end the game."""
        with tracer.start_as_current_span("game.play_turn") as span:
            self._require_phase(GamePhase.PLAYING)
            attacker = self.current
            defender = self.opponent
            span.set_attribute("player", attacker.display_name)
            try:
                result = attacker.attack(defender, coordinate)
            except ValueError as exc:
                span.record_exception(exc)
                span.set_attribute("error", True)
                record_game_metric(
                    "seabattle_game_invalid_turns_total",
                    1,
                    {"player": attacker.display_name, "reason": type(exc).__name__},
                )
                logger.warning(
                    "turn_rejected",
                    extra={"player": attacker.display_name, "reason": str(exc)},
                )
                raise

            self.turns += 1
            span.set_attribute("row", result.coordinate.row)
            span.set_attribute("col", result.coordinate.col)
            span.set_attribute("outcome", result.outcome.value)
            record_game_metric(
                "seabattle_game_turns_total",
                1,
                {"player": attacker.display_name, "result": result.outcome.value},
            )

            if defender.board.all_vessels_sunk():
                self.winner = attacker
                self.phase = GamePhase.GAME_OVER
                span.set_attribute("game.winner", attacker.display_name)
                record_game_metric(
                    "seabattle_game_completed_total", 1, {"winner": attacker.display_name}
                )
                logger.info(
                    "game_finished",
                    extra={"winner": attacker.display_name, "turns": self.turns},
                )
            else:
                self.current = defender
                span.set_attribute("next_player", defender.display_name)
            return result

    def play_autonomous_turns(self) -> list[AttackResult]:
        """Play turns while an autonomous combatant is to move."""
        results: list[AttackResult] = []
        while self.phase is GamePhase.PLAYING and self.current.is_autonomous:
            results.append(self.play_turn())
        return results

    def get_state(self) -> GameState:
        return GameState(
            phase=self.phase,
            current=self.current.display_name,
            winner=self.winner.display_name if self.winner else None,
            boards=tuple(c.board.snapshot() for c in self.combatants),
            turns=self.turns,
        )
