"""Building placement and removal on the city grid."""
from __future__ import annotations

import logging
from dataclasses import replace

from isotown.catalog import DEFAULT_CATALOG, BuildingCatalog
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.grid import Grid, grid_key, is_valid_position
from isotown.population import PopulationSyncBridge
from isotown.state import CityState, add_city_log, clamp_non_negative
from isotown.types import PlacedBuilding, Position, RejectReason, Rejected

logger = logging.getLogger(__name__)


def can_afford(state: CityState, building_type: str,
               catalog: BuildingCatalog = DEFAULT_CATALOG) -> bool:
    return state.coins >= catalog.get(building_type).cost


def place_building(
    state: CityState,
    x: int,
    y: int,
    building_type: str,
    now: int,
    *,
    catalog: BuildingCatalog = DEFAULT_CATALOG,
    config: CityConfig = DEFAULT_CONFIG,
    bridge: PopulationSyncBridge | None = None,
) -> CityState | Rejected:
    """Build ``building_type`` at (x, y), paying its cost and applying its effects."""
    if not catalog.has(building_type):
        return _reject(RejectReason.UNKNOWN_BUILDING, x, y, building_type)
    if not is_valid_position(x, y, config):
        return _reject(RejectReason.INVALID_POSITION, x, y, building_type)
    key = grid_key(x, y)
    if key in state.grid:
        return _reject(RejectReason.TILE_OCCUPIED, x, y, building_type)
    btype = catalog.get(building_type)
    if state.coins < btype.cost:
        return _reject(RejectReason.INSUFFICIENT_FUNDS, x, y, building_type)

    grid = dict(state.grid)
    grid[key] = PlacedBuilding(type=btype.id, placed_at=now)
    effects = btype.effects
    new_state = replace(
        state,
        grid=grid,
        coins=clamp_non_negative(state.coins - btype.cost),
        population=clamp_non_negative(state.population + effects.population),
        happiness=clamp_non_negative(state.happiness + effects.happiness),
        jobs=clamp_non_negative(state.jobs + effects.jobs),
    )
    new_state = add_city_log(new_state, f"Built {btype.name}", config)
    logger.debug("built %s at (%d, %d) for %d coins", btype.id, x, y, btype.cost)
    if bridge is not None:
        bridge.sync(new_state.population, new_state.grid, new_state.include_player)
    return new_state


def erase_building(
    state: CityState,
    x: int,
    y: int,
    *,
    catalog: BuildingCatalog = DEFAULT_CATALOG,
    config: CityConfig = DEFAULT_CONFIG,
    bridge: PopulationSyncBridge | None = None,
) -> CityState | Rejected:
    """Remove the building at (x, y), refunding half its cost (floored)."""
    if not is_valid_position(x, y, config):
        return _reject(RejectReason.INVALID_POSITION, x, y)
    key = grid_key(x, y)
    placed = state.grid.get(key)
    if placed is None:
        return _reject(RejectReason.TILE_EMPTY, x, y)

    btype = catalog.get(placed.type)
    grid = dict(state.grid)
    del grid[key]
    effects = btype.effects
    new_state = replace(
        state,
        grid=grid,
        coins=state.coins + btype.cost // 2,
        population=clamp_non_negative(state.population - effects.population),
        happiness=clamp_non_negative(state.happiness - effects.happiness),
        jobs=clamp_non_negative(state.jobs - effects.jobs),
    )
    new_state = add_city_log(new_state, f"Removed {btype.name}", config)
    logger.debug("removed %s at (%d, %d)", btype.id, x, y)
    if bridge is not None:
        bridge.sync(new_state.population, new_state.grid, new_state.include_player)
    return new_state


def find_suggested_tile(grid: Grid,
                        config: CityConfig = DEFAULT_CONFIG) -> Position | None:
    """Nearest empty tile to the grid centre, searched in Manhattan rings.

    Within a ring, ``dx`` runs from ``-dist`` to ``dist`` and for each one
    (cx+dx, cy+dy) is tried before (cx+dx, cy-dy).
    """
    cx, cy = config.width // 2, config.height // 2
    for dist in range(config.width + config.height + 1):
        for dx in range(-dist, dist + 1):
            dy = dist - abs(dx)
            for pos in ((cx + dx, cy + dy), (cx + dx, cy - dy)):
                if not is_valid_position(*pos, config):
                    continue
                if grid_key(*pos) not in grid:
                    return pos
    return None


def _reject(reason: RejectReason, x: int, y: int,
            building: str | None = None) -> Rejected:
    logger.debug("rejected %s at (%d, %d): %s", building or "erase", x, y, reason.value)
    return Rejected(reason=reason, x=x, y=y, building=building)
