"""CityEngine - owns one city session and drives its tick loop."""
from __future__ import annotations

import logging
import os
import random
import time
from typing import Any, Callable

from isotown.catalog import DEFAULT_CATALOG, BuildingCatalog
from isotown.clock import TickClock, now_ms
from isotown.coins import collect_dropped_coins
from isotown.commands import (
    CollectCoins,
    CommandQueue,
    EraseBuilding,
    MovePlayer,
    PlaceBuilding,
    SetIncludePlayer,
    SetTaxRate,
    SetWorldCondition,
)
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.placement import erase_building, find_suggested_tile, place_building
from isotown.population import CharacterRoster
from isotown.simulation import process_tick
from isotown.snapshot import state_from_record, state_to_record
from isotown.state import (
    CityState,
    initialize_city,
    set_include_player,
    set_tax_rate,
    set_world_condition,
)
from isotown.status import GameStatus, evaluate_status
from isotown.types import Position, Rejected, SnapshotError, WorldCondition
from isotown.weather import DEFAULT_LAT, DEFAULT_LON, WeatherReport, WeatherService

logger = logging.getLogger(__name__)

_SNAPSHOT_VERSION = 1

TickHook = Callable[[CityState], None]
StatusHook = Callable[[GameStatus, CityState], None]


class CityEngine:
    """Single owner of a CityState.

    Every mutation (placement, removal, coin pickup, ticks) runs here,
    synchronously and to completion. Callers on other threads should go
    through :meth:`submit`; queued commands are applied by :meth:`drain`,
    which :meth:`advance` calls before each tick.
    """

    def __init__(
        self,
        config: CityConfig = DEFAULT_CONFIG,
        catalog: BuildingCatalog = DEFAULT_CATALOG,
        seed: int | None = None,
        clock: Callable[[], int] = now_ms,
        weather: WeatherService | None = None,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._tick_clock = TickClock.from_config(config)
        self._now = clock
        self._weather = weather
        self._tick_hooks: list[TickHook] = []
        self._status_hooks: list[StatusHook] = []
        self._stop_requested = False

        if seed is None:
            seed = int.from_bytes(os.urandom(8))
        self._seed = seed
        self._rng = random.Random(seed)

        self._queue = CommandQueue()
        self._register_handlers()

        self._state = initialize_city(self._now(), config=config)
        self._status = GameStatus.IN_PROGRESS
        self._roster = CharacterRoster(self._rng, config)
        self._roster.sync(self._state.population, self._state.grid, self._state.include_player)

    # -- accessors --

    @property
    def state(self) -> CityState:
        return self._state

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> CityConfig:
        return self._config

    @property
    def catalog(self) -> BuildingCatalog:
        return self._catalog

    @property
    def roster(self) -> CharacterRoster:
        return self._roster

    @property
    def clock(self) -> TickClock:
        return self._tick_clock

    def on_tick(self, hook: TickHook) -> None:
        self._tick_hooks.append(hook)

    def on_status(self, hook: StatusHook) -> None:
        self._status_hooks.append(hook)

    # -- lifecycle --

    def new_game(self, world_condition: WorldCondition | None = None,
                 temperature: float | None = None) -> CityState:
        """Discard the current city and start over. Clears the game-over state."""
        self._queue.clear()
        self._state = initialize_city(self._now(), world_condition, temperature, self._config)
        self._roster = CharacterRoster(self._rng, self._config)
        self._roster.sync(self._state.population, self._state.grid, self._state.include_player)
        self._set_status(GameStatus.IN_PROGRESS)
        logger.info("new city started (seed=%d)", self._seed)
        return self._state

    # -- player actions --

    def place(self, building: str, x: int, y: int) -> CityState | Rejected:
        result = place_building(
            self._state, x, y, building, self._now(),
            catalog=self._catalog, config=self._config, bridge=self._roster,
        )
        if not isinstance(result, Rejected):
            self._state = result
        return result

    def erase(self, x: int, y: int) -> CityState | Rejected:
        result = erase_building(
            self._state, x, y,
            catalog=self._catalog, config=self._config, bridge=self._roster,
        )
        if not isinstance(result, Rejected):
            self._state = result
        return result

    def collect(self, x: int, y: int) -> int:
        self._state, collected = collect_dropped_coins(self._state, x, y)
        if collected:
            logger.debug("collected %d coins at (%d, %d)", collected, x, y)
        return collected

    def move_player(self, direction: str) -> int:
        """Move the player and pick up any coins on the tile it ends on."""
        pos = self._roster.move_player(direction, self._state.grid)
        if pos is None:
            return 0
        return self.collect(*pos)

    def set_tax_rate(self, rate: float) -> float:
        self._state = set_tax_rate(self._state, rate, self._config)
        return self._state.tax_rate

    def set_include_player(self, include: bool) -> None:
        self._state = set_include_player(self._state, include)
        self._roster.sync(self._state.population, self._state.grid, self._state.include_player)

    def set_world_condition(self, condition: WorldCondition,
                            temperature: float | None = None) -> None:
        self._state = set_world_condition(self._state, condition, temperature)

    def apply_weather(self, report: WeatherReport) -> None:
        self.set_world_condition(report.condition, report.temperature)

    def refresh_weather(self, lat: float = DEFAULT_LAT, lon: float = DEFAULT_LON) -> WeatherReport:
        if self._weather is None:
            raise RuntimeError("CityEngine was created without a WeatherService")
        report = self._weather.current(lat, lon)
        self.apply_weather(report)
        return report

    def suggested_tile(self) -> Position | None:
        return find_suggested_tile(self._state.grid, self._config)

    # -- command queue --

    def submit(self, cmd: Any) -> None:
        self._queue.enqueue(cmd)

    def drain(self) -> list[tuple[Any, Any]]:
        return self._queue.drain()

    def _register_handlers(self) -> None:
        q = self._queue
        q.handle(PlaceBuilding, lambda c: self.place(c.building, c.x, c.y))
        q.handle(EraseBuilding, lambda c: self.erase(c.x, c.y))
        q.handle(CollectCoins, lambda c: self.collect(c.x, c.y))
        q.handle(MovePlayer, lambda c: self.move_player(c.direction))
        q.handle(SetTaxRate, lambda c: self.set_tax_rate(c.rate))
        q.handle(SetWorldCondition, lambda c: self.set_world_condition(c.condition, c.temperature))
        q.handle(SetIncludePlayer, lambda c: self.set_include_player(c.include))

    # -- ticking --

    def seconds_until_next(self, now: int | None = None) -> int:
        now = self._now() if now is None else now
        return self._tick_clock.seconds_until_next(self._state.last_tick_at, now)

    def advance(self, now: int | None = None) -> bool:
        """Drain queued commands, then tick once if a tick is due.

        Returns True if a tick was processed.
        """
        self.drain()
        now = self._now() if now is None else now
        if self._status.terminal:
            return False
        if not self._tick_clock.is_due(self._state.last_tick_at, now):
            return False
        self._tick(now)
        return True

    def step(self, now: int | None = None) -> bool:
        """Drain queued commands, then force one tick regardless of timing.

        No-op once the game is over.
        """
        self.drain()
        if self._status.terminal:
            return False
        self._tick(self._now() if now is None else now)
        return True

    def run(self, n: int) -> int:
        """Process up to ``n`` ticks spaced one interval apart in game time.

        Stops early when the game ends or :meth:`stop` is called. Returns the
        number of ticks processed.
        """
        self._stop_requested = False
        done = 0
        for _ in range(n):
            if self._stop_requested or self._status.terminal:
                break
            self.drain()
            self._tick(self._state.last_tick_at + self._tick_clock.interval_ms)
            done += 1
        return done

    def run_forever(self, poll: float = 0.1) -> None:
        """Tick in real time until the game ends or :meth:`stop` is called."""
        self._stop_requested = False
        while not self._stop_requested and not self._status.terminal:
            start = time.monotonic()
            self.advance()
            elapsed = time.monotonic() - start
            sleep_time = poll - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

    def stop(self) -> None:
        self._stop_requested = True

    def _tick(self, now: int) -> None:
        self._state = process_tick(
            self._state, self._rng, now, config=self._config, bridge=self._roster,
        )
        for hook in self._tick_hooks:
            hook(self._state)
        self._set_status(evaluate_status(self._state, self._config))

    def _set_status(self, status: GameStatus) -> None:
        if status is self._status:
            return
        self._status = status
        if status.terminal:
            logger.info("game over at tick %d: %s", self._state.tick_count, status.value)
        for hook in self._status_hooks:
            hook(status, self._state)

    # -- snapshot / restore --

    def snapshot(self) -> dict[str, Any]:
        return {
            "version": _SNAPSHOT_VERSION,
            "seed": self._seed,
            "rng_state": _serialize_rng_state(self._rng.getstate()),
            "status": self._status.value,
            "city": state_to_record(self._state),
            "roster": self._roster.snapshot(),
        }

    def restore(self, data: dict[str, Any]) -> None:
        if not isinstance(data, dict):
            raise SnapshotError(f"Engine snapshot must be an object, got {type(data).__name__}")
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )
        state = state_from_record(data.get("city"), self._catalog, self._config)
        try:
            seed = int(data["seed"])
            status = GameStatus(data["status"])
            rng_state = _deserialize_rng_state(data["rng_state"])
            random.Random().setstate(rng_state)
            roster_data = data["roster"]
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Invalid engine snapshot: {exc}") from exc
        roster = CharacterRoster(self._rng, self._config)
        roster.restore(roster_data)

        self._queue.clear()
        self._seed = seed
        self._rng.setstate(rng_state)
        self._state = state
        self._roster = roster
        self._status = status
        logger.info("restored city at tick %d", state.tick_count)


def _serialize_rng_state(state: tuple[int, tuple[int, ...], float | None]) -> list[Any]:
    """Convert Random.getstate() tuple to JSON-compatible list."""
    version, internalstate, gauss_next = state
    return [version, list(internalstate), gauss_next]


def _deserialize_rng_state(data: list[Any]) -> tuple[int, tuple[int, ...], float | None]:
    version, internalstate, gauss_next = data
    return (version, tuple(internalstate), gauss_next)
