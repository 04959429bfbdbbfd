"""Win/lose evaluation after each tick."""
from __future__ import annotations

from enum import Enum

from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.state import CityState


class GameStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"

    @property
    def terminal(self) -> bool:
        return self is not GameStatus.IN_PROGRESS


def evaluate_status(state: CityState, config: CityConfig = DEFAULT_CONFIG) -> GameStatus:
    if state.happiness <= 0:
        return GameStatus.LOST
    if (state.population >= config.goal_population
            and state.happiness >= config.goal_happiness
            and state.coins >= config.goal_coins):
        return GameStatus.WON
    return GameStatus.IN_PROGRESS
