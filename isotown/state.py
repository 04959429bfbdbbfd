"""CityState - the single source of truth for one game session."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.types import DroppedCoin, PlacedBuilding, WorldCondition


@dataclass(frozen=True)
class CityState:
    """Immutable city snapshot.

    Operations never mutate a state; they return a new one built with
    :func:`dataclasses.replace`. ``grid`` is stored as a read-only view of
    a private copy; changes build a new dict. ``city_log`` is newest-first.
    States compare by value but are not hashable.
    """

    coins: int = 0
    population: int = 0
    jobs: int = 0
    happiness: int = 0
    tax_rate: float = 0.0
    grid: Mapping[str, PlacedBuilding] = field(default_factory=dict)
    tick_count: int = 0
    last_tick_at: int = 0
    dropped_coins: tuple[DroppedCoin, ...] = ()
    city_log: tuple[str, ...] = ()
    world_condition: WorldCondition = WorldCondition.CLEAR
    world_temperature: float | None = None
    include_player: bool = True

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.grid, MappingProxyType):
            object.__setattr__(self, "grid", MappingProxyType(dict(self.grid)))


def clamp_non_negative(value: int) -> int:
    return max(0, value)


def clamp_tax_rate(rate: float, config: CityConfig = DEFAULT_CONFIG) -> float:
    if math.isnan(rate):
        return 0.0
    return max(0.0, min(config.max_tax_rate, rate))


def _clean_temperature(temperature: float | None) -> float | None:
    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        return None
    if not math.isfinite(temperature):
        return None
    return float(temperature)


def initialize_city(
    now: int,
    world_condition: WorldCondition | None = None,
    world_temperature: float | None = None,
    config: CityConfig = DEFAULT_CONFIG,
) -> CityState:
    return CityState(
        coins=config.starting_coins,
        happiness=config.starting_happiness,
        last_tick_at=now,
        world_condition=world_condition or WorldCondition.CLEAR,
        world_temperature=_clean_temperature(world_temperature),
    )


def add_city_log(state: CityState, message: str,
                 config: CityConfig = DEFAULT_CONFIG) -> CityState:
    """Prepend ``message``, keeping only the newest ``city_log_size`` entries."""
    log = (message, *state.city_log)[:config.city_log_size]
    return replace(state, city_log=log)


def set_tax_rate(state: CityState, rate: float,
                 config: CityConfig = DEFAULT_CONFIG) -> CityState:
    return replace(state, tax_rate=clamp_tax_rate(rate, config))


def set_world_condition(state: CityState, condition: WorldCondition,
                        temperature: float | None = None) -> CityState:
    return replace(
        state,
        world_condition=WorldCondition(condition),
        world_temperature=_clean_temperature(temperature),
    )


def set_include_player(state: CityState, include: bool) -> CityState:
    return replace(state, include_player=bool(include))
