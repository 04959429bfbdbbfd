"""Grid queries - bounds, adjacency and radius lookups over the tile map.

The grid itself is a plain mapping from ``"x,y"`` keys to
:class:`~isotown.types.PlacedBuilding`; a missing key is a grass tile.
Every function here is read-only.
"""
from __future__ import annotations

from typing import Mapping

from isotown.catalog import FIRE, POLICE, ROAD
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.types import PlacedBuilding, Position

Grid = Mapping[str, PlacedBuilding]

_ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))


def grid_key(x: int, y: int) -> str:
    return f"{x},{y}"


def parse_grid_key(key: str) -> Position:
    xs, ys = key.split(",")
    return int(xs), int(ys)


def is_valid_position(x: int, y: int, config: CityConfig = DEFAULT_CONFIG) -> bool:
    return 0 <= x < config.width and 0 <= y < config.height


def adjacent_tiles(x: int, y: int,
                   config: CityConfig = DEFAULT_CONFIG) -> list[Position]:
    """In-bounds orthogonal neighbours, in left/right/up/down order."""
    result: list[Position] = []
    for dx, dy in _ORTHOGONAL:
        nx, ny = x + dx, y + dy
        if is_valid_position(nx, ny, config):
            result.append((nx, ny))
    return result


def tiles_within_distance(x: int, y: int, distance: int,
                          config: CityConfig = DEFAULT_CONFIG) -> list[Position]:
    """In-bounds tiles within Manhattan ``distance`` of (x, y), centre included."""
    result: list[Position] = []
    for dx in range(-distance, distance + 1):
        for dy in range(-distance, distance + 1):
            if abs(dx) + abs(dy) > distance:
                continue
            nx, ny = x + dx, y + dy
            if is_valid_position(nx, ny, config):
                result.append((nx, ny))
    return result


def type_at(grid: Grid, x: int, y: int) -> str | None:
    building = grid.get(grid_key(x, y))
    return building.type if building is not None else None


def adjacent_roads(grid: Grid, x: int, y: int,
                   config: CityConfig = DEFAULT_CONFIG) -> list[Position]:
    return [pos for pos in adjacent_tiles(x, y, config) if type_at(grid, *pos) == ROAD]


def is_adjacent_to_road(grid: Grid, x: int, y: int,
                        config: CityConfig = DEFAULT_CONFIG) -> bool:
    return any(type_at(grid, *pos) == ROAD for pos in adjacent_tiles(x, y, config))


def has_building_within_distance(grid: Grid, x: int, y: int, building_type: str,
                                 distance: int,
                                 config: CityConfig = DEFAULT_CONFIG) -> bool:
    return any(
        type_at(grid, *pos) == building_type
        for pos in tiles_within_distance(x, y, distance, config)
    )


def count_buildings(grid: Grid, building_type: str) -> int:
    return sum(1 for b in grid.values() if b.type == building_type)


def count_safety(grid: Grid) -> int:
    return count_buildings(grid, POLICE) + count_buildings(grid, FIRE)


def iter_buildings(grid: Grid) -> list[tuple[int, int, PlacedBuilding]]:
    """``(x, y, building)`` triples in grid insertion order."""
    return [(*parse_grid_key(key), building) for key, building in grid.items()]
