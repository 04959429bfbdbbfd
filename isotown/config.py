"""City engine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CityConfig:
    """Immutable tuning constants for a city session.

    Attributes:
        width: Grid width in tiles.
        height: Grid height in tiles.
        tick_interval_ms: Real time per simulated tick.
        day_length: Ticks per simulated day.
        day_ticks: Leading ticks of each day that count as daytime.
        starting_coins: Coins of a fresh city.
        starting_happiness: Happiness of a fresh city.
        max_tax_rate: Upper bound of the mayor's tax rate.
        max_dropped_coins: Live dropped coins allowed at once.
        city_log_size: Entries kept in the city log.
        coin_drop_chance: Per-building, per-tick chance of a coin drop.
        safety_event_chance: Per-tick chance of unrest without police/fire.
        low_happiness_threshold: Happiness level that triggers a warning.
        house_search_distance: Manhattan radius an office looks for a house in.
        goal_population: Population needed to win.
        goal_happiness: Happiness needed to win.
        goal_coins: Coins needed to win.
    """

    width: int = 12
    height: int = 12
    tick_interval_ms: int = 5000
    day_length: int = 12
    day_ticks: int = 6
    starting_coins: int = 20
    starting_happiness: int = 10
    max_tax_rate: float = 0.10
    max_dropped_coins: int = 20
    city_log_size: int = 10
    coin_drop_chance: float = 0.15
    safety_event_chance: float = 0.10
    low_happiness_threshold: int = 4
    house_search_distance: int = 2
    goal_population: int = 20
    goal_happiness: int = 20
    goal_coins: int = 30

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("grid width and height must be positive")
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        if not 0 < self.day_ticks <= self.day_length:
            raise ValueError("day_ticks must be within 1..day_length")
        if self.max_dropped_coins < 0 or self.city_log_size < 0:
            raise ValueError("caps must not be negative")


DEFAULT_CONFIG = CityConfig()
