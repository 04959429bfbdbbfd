"""Weather collaborator - maps provider readings to a world condition.

The engine only consumes :class:`WeatherReport` values; where they come from
is up to the provider handed to :class:`WeatherService`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from isotown.clock import now_ms
from isotown.types import WorldCondition

logger = logging.getLogger(__name__)

DEFAULT_LAT = 3.1390
DEFAULT_LON = 101.6869

RAIN_PRECIPITATION = 0.0
WIND_SPEED = 20.0
HEAT_TEMPERATURE = 32.0
DEFAULT_TEMPERATURE = 25.0


class WeatherError(Exception):
    """Raised by weather providers when a reading cannot be fetched."""


@dataclass(frozen=True)
class WeatherReading:
    precipitation: float = 0.0
    wind_speed: float = 0.0
    temperature: float | None = None


@dataclass(frozen=True)
class WeatherReport:
    condition: WorldCondition
    temperature: float | None
    fetched_at: int
    lat: float = DEFAULT_LAT
    lon: float = DEFAULT_LON


def determine_world_condition(reading: WeatherReading) -> WorldCondition:
    if reading.precipitation > RAIN_PRECIPITATION:
        return WorldCondition.RAIN
    if reading.wind_speed > WIND_SPEED:
        return WorldCondition.WIND
    temperature = reading.temperature if reading.temperature is not None else DEFAULT_TEMPERATURE
    if temperature > HEAT_TEMPERATURE:
        return WorldCondition.HEAT
    return WorldCondition.CLEAR


@runtime_checkable
class WeatherProvider(Protocol):
    """Source of raw weather readings. May raise :class:`WeatherError`."""

    def fetch(self, lat: float, lon: float) -> WeatherReading:
        ...


class StaticWeatherProvider:
    """Provider that always returns the same reading.

    Set ``error`` to make every fetch raise it instead.
    """

    def __init__(self, reading: WeatherReading | None = None,
                 error: BaseException | None = None) -> None:
        self.reading = reading if reading is not None else WeatherReading()
        self.error = error
        self.calls = 0

    def fetch(self, lat: float, lon: float) -> WeatherReading:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reading


class WeatherService:
    """Caches provider readings per location for ``ttl_ms``.

    Each instance owns its cache, so independent services never share
    readings.
    """

    def __init__(self, provider: WeatherProvider, ttl_ms: int = 5 * 60 * 1000,
                 clock: Callable[[], int] = now_ms) -> None:
        if ttl_ms < 0:
            raise ValueError("ttl_ms must not be negative")
        self._provider = provider
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._cache: dict[tuple[float, float], WeatherReport] = {}

    def cached(self, lat: float = DEFAULT_LAT, lon: float = DEFAULT_LON) -> WeatherReport | None:
        report = self._cache.get((lat, lon))
        if report is None or self._clock() - report.fetched_at >= self._ttl_ms:
            return None
        return report

    def current(self, lat: float = DEFAULT_LAT, lon: float = DEFAULT_LON) -> WeatherReport:
        fresh = self.cached(lat, lon)
        if fresh is not None:
            return fresh
        try:
            reading = self._provider.fetch(lat, lon)
        except WeatherError as exc:
            stale = self._cache.get((lat, lon))
            if stale is None:
                raise
            logger.warning("weather fetch failed, keeping %s from %d: %s",
                           stale.condition.value, stale.fetched_at, exc)
            return stale
        report = WeatherReport(
            condition=determine_world_condition(reading),
            temperature=reading.temperature,
            fetched_at=self._clock(),
            lat=lat,
            lon=lon,
        )
        self._cache[(lat, lon)] = report
        logger.info("weather at (%.4f, %.4f): %s", lat, lon, report.condition.value)
        return report

    def clear(self) -> None:
        self._cache.clear()
