"""TickClock - tick eligibility and the day/night cycle."""
from __future__ import annotations

import math
import time

from isotown.config import DEFAULT_CONFIG, CityConfig


def now_ms() -> int:
    """Wall-clock epoch milliseconds."""
    return int(time.time() * 1000)


class TickClock:
    def __init__(self, interval_ms: int = 5000, day_length: int = 12,
                 day_ticks: int = 6) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if not 0 < day_ticks <= day_length:
            raise ValueError("day_ticks must be within 1..day_length")
        self._interval_ms = interval_ms
        self._day_length = day_length
        self._day_ticks = day_ticks

    @classmethod
    def from_config(cls, config: CityConfig) -> TickClock:
        return cls(config.tick_interval_ms, config.day_length, config.day_ticks)

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def day_length(self) -> int:
        return self._day_length

    def is_due(self, last_tick_at: int, now: int) -> bool:
        return now - last_tick_at >= self._interval_ms

    def tick_in_day(self, tick_count: int) -> int:
        """Position of tick number ``tick_count`` (1-based) within its day."""
        return (tick_count - 1) % self._day_length

    def is_day(self, tick_count: int) -> bool:
        return self.tick_in_day(tick_count) < self._day_ticks

    def seconds_until_next(self, last_tick_at: int, now: int) -> int:
        remaining = self._interval_ms - (now - last_tick_at)
        return max(0, math.ceil(remaining / 1000))


DEFAULT_CLOCK = TickClock.from_config(DEFAULT_CONFIG)
