"""Versioned save records for CityState.

Records are JSON-compatible dicts with camelCase keys. Version 1 is the
legacy untyped blob written by older clients; it is migrated on load. Any
other unknown version is rejected.
"""
from __future__ import annotations

import logging
import math
from typing import Any

from isotown.catalog import DEFAULT_CATALOG, BuildingCatalog
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.grid import grid_key, is_valid_position
from isotown.state import CityState
from isotown.types import DroppedCoin, PlacedBuilding, SnapshotError, WorldCondition

logger = logging.getLogger(__name__)

SAVE_VERSION = 2

_LEGACY_VERSIONS = ("1", 1)
_COUNTERS = ("coins", "population", "jobs", "happiness")


def state_to_record(state: CityState) -> dict[str, Any]:
    return {
        "version": SAVE_VERSION,
        "coins": state.coins,
        "population": state.population,
        "jobs": state.jobs,
        "happiness": state.happiness,
        "taxRate": state.tax_rate,
        "grid": {
            key: {"type": b.type, "placedAt": b.placed_at}
            for key, b in state.grid.items()
        },
        "tickCount": state.tick_count,
        "lastTickAt": state.last_tick_at,
        "droppedCoins": [
            {"id": c.id, "x": c.x, "y": c.y, "amount": c.amount}
            for c in state.dropped_coins
        ],
        "cityLog": list(state.city_log),
        "worldCondition": state.world_condition.value,
        "worldTemperature": state.world_temperature,
        "includePlayer": state.include_player,
    }


def migrate_record(data: dict[str, Any],
                   config: CityConfig = DEFAULT_CONFIG) -> dict[str, Any]:
    """Bring a record up to :data:`SAVE_VERSION` or raise SnapshotError."""
    if not isinstance(data, dict):
        raise SnapshotError(f"Save record must be an object, got {type(data).__name__}")
    version = data.get("version")
    if version == SAVE_VERSION:
        return data
    if version in _LEGACY_VERSIONS:
        logger.info("migrating save record from version %r to %d", version, SAVE_VERSION)
        return _migrate_v1(data, config)
    raise SnapshotError(
        f"Unsupported save version {version!r}, expected {SAVE_VERSION}"
    )


def _migrate_v1(data: dict[str, Any], config: CityConfig) -> dict[str, Any]:
    temperature = data.get("worldTemperature")
    coins = [coin for coin in data.get("droppedCoins") or [] if isinstance(coin, dict)]
    # Older clients capped drops once per tick, so saves may run over.
    if len(coins) > config.max_dropped_coins:
        logger.info("dropping %d legacy coins over the cap of %d",
                    len(coins) - config.max_dropped_coins, config.max_dropped_coins)
        coins = coins[:config.max_dropped_coins]
    return {
        "version": SAVE_VERSION,
        "coins": data.get("coins", 0),
        "population": data.get("population", 0),
        "jobs": data.get("jobs", 0),
        "happiness": data.get("happiness", 0),
        "taxRate": data.get("taxRate") or 0.0,
        "grid": data.get("grid") or {},
        "tickCount": data.get("tickCount") or 0,
        "lastTickAt": data.get("lastTickAt") or 0,
        "droppedCoins": [
            {**coin, "amount": coin.get("amount") or 1}
            for coin in coins
        ],
        "cityLog": data.get("cityLog") or [],
        "worldCondition": data.get("worldCondition") or WorldCondition.CLEAR.value,
        "worldTemperature": temperature,
        "includePlayer": data.get("includePlayer", True) is not False,
    }


def state_from_record(
    data: dict[str, Any],
    catalog: BuildingCatalog = DEFAULT_CATALOG,
    config: CityConfig = DEFAULT_CONFIG,
) -> CityState:
    """Validate a record and build the CityState it describes."""
    record = migrate_record(data, config)

    counters = {name: _non_negative_int(record, name) for name in _COUNTERS}

    tax_rate = record.get("taxRate")
    if not _is_number(tax_rate) or not 0 <= tax_rate <= config.max_tax_rate:
        raise SnapshotError(f"taxRate must be within [0, {config.max_tax_rate}]")

    grid = _read_grid(record.get("grid"), catalog, config)

    tick_count = _non_negative_int(record, "tickCount")
    last_tick_at = _non_negative_int(record, "lastTickAt")

    dropped = _read_dropped_coins(record.get("droppedCoins"), config)

    city_log = record.get("cityLog")
    if not isinstance(city_log, list) or not all(isinstance(m, str) for m in city_log):
        raise SnapshotError("cityLog must be a list of strings")
    if len(city_log) > config.city_log_size:
        raise SnapshotError(f"cityLog holds more than {config.city_log_size} entries")

    try:
        condition = WorldCondition(record.get("worldCondition"))
    except ValueError:
        raise SnapshotError(
            f"Unknown worldCondition {record.get('worldCondition')!r}"
        ) from None

    temperature = record.get("worldTemperature")
    if temperature is not None and (not _is_number(temperature) or not math.isfinite(temperature)):
        raise SnapshotError("worldTemperature must be a finite number or null")

    include_player = record.get("includePlayer")
    if not isinstance(include_player, bool):
        raise SnapshotError("includePlayer must be a boolean")

    return CityState(
        **counters,
        tax_rate=float(tax_rate),
        grid=grid,
        tick_count=tick_count,
        last_tick_at=last_tick_at,
        dropped_coins=dropped,
        city_log=tuple(city_log),
        world_condition=condition,
        world_temperature=float(temperature) if temperature is not None else None,
        include_player=include_player,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_negative_int(record: dict[str, Any], name: str) -> int:
    value = record.get(name)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SnapshotError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _read_grid(raw: Any, catalog: BuildingCatalog,
               config: CityConfig) -> dict[str, PlacedBuilding]:
    if not isinstance(raw, dict):
        raise SnapshotError("grid must be an object")
    grid: dict[str, PlacedBuilding] = {}
    for key, entry in raw.items():
        try:
            xs, ys = str(key).split(",")
            x, y = int(xs), int(ys)
        except ValueError:
            raise SnapshotError(f"Malformed grid key {key!r}") from None
        if not is_valid_position(x, y, config):
            raise SnapshotError(f"Grid key {key!r} is out of bounds")
        if not isinstance(entry, dict):
            raise SnapshotError(f"Grid entry {key!r} must be an object")
        btype = entry.get("type")
        if not isinstance(btype, str) or not catalog.has(btype):
            raise SnapshotError(f"Grid entry {key!r} has unknown type {btype!r}")
        placed_at = entry.get("placedAt", 0)
        if not _is_number(placed_at):
            raise SnapshotError(f"Grid entry {key!r} has invalid placedAt")
        grid[grid_key(x, y)] = PlacedBuilding(type=btype, placed_at=int(placed_at))
    return grid


def _read_dropped_coins(raw: Any, config: CityConfig) -> tuple[DroppedCoin, ...]:
    if not isinstance(raw, list):
        raise SnapshotError("droppedCoins must be a list")
    if len(raw) > config.max_dropped_coins:
        raise SnapshotError(f"droppedCoins holds more than {config.max_dropped_coins} entries")
    coins: list[DroppedCoin] = []
    seen: set[str] = set()
    for entry in raw:
        if not isinstance(entry, dict):
            raise SnapshotError("droppedCoins entries must be objects")
        cid, x, y, amount = (entry.get(k) for k in ("id", "x", "y", "amount"))
        if not isinstance(cid, str) or cid in seen:
            raise SnapshotError(f"Dropped coin id {cid!r} is missing or duplicated")
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (x, y, amount)):
            raise SnapshotError(f"Dropped coin {cid!r} has non-integer fields")
        if not is_valid_position(x, y, config) or amount < 1:
            raise SnapshotError(f"Dropped coin {cid!r} is out of bounds or empty")
        seen.add(cid)
        coins.append(DroppedCoin(id=cid, x=x, y=y, amount=amount))
    return tuple(coins)
