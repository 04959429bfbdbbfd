"""Building catalog - ids, costs and stat effects of every building kind."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

ROAD = "ROAD"
HOUSE = "HOUSE"
CAFE = "CAFE"
OFFICE = "OFFICE"
RESTAURANT = "RESTAURANT"
POLICE = "POLICE"
FIRE = "FIRE"

# Kinds that earn coins during the day and may drop coins on nearby roads.
EARNING_TYPES = frozenset({CAFE, OFFICE, RESTAURANT})


@dataclass(frozen=True)
class BuildingEffects:
    population: int = 0
    happiness: int = 0
    jobs: int = 0
    safety: int = 0


@dataclass(frozen=True)
class BuildingType:
    id: str
    name: str
    cost: int
    effects: BuildingEffects = field(default_factory=BuildingEffects)
    description: str = ""


class BuildingCatalog:
    """Registry of building kinds, keyed by id."""

    def __init__(self, types: list[BuildingType] | None = None) -> None:
        self._types: dict[str, BuildingType] = {}
        for btype in types or ():
            self.define(btype)

    def define(self, btype: BuildingType) -> None:
        """Add a building kind. Overwrites an existing id."""
        if btype.cost < 0:
            raise ValueError(f"{btype.id}: cost must not be negative")
        self._types[btype.id] = btype

    def get(self, type_id: str) -> BuildingType:
        """Raises KeyError if the id is not defined."""
        return self._types[type_id]

    def has(self, type_id: str) -> bool:
        return type_id in self._types

    def ids(self) -> list[str]:
        return list(self._types)

    def __iter__(self) -> Iterator[BuildingType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


def default_catalog() -> BuildingCatalog:
    """Return a fresh catalog holding the seven standard building kinds."""
    return BuildingCatalog([
        BuildingType(ROAD, "Road", 1, BuildingEffects(),
                     "Connects buildings"),
        BuildingType(HOUSE, "House", 3, BuildingEffects(population=2),
                     "+2 Population. Pays rent each day."),
        BuildingType(CAFE, "Cafe", 5, BuildingEffects(happiness=2),
                     "+2 Happiness, Earns coins (day only)"),
        BuildingType(OFFICE, "Office", 8, BuildingEffects(jobs=3),
                     "+3 Jobs, Earns coins (day only)"),
        BuildingType(RESTAURANT, "Restaurant", 7, BuildingEffects(happiness=1),
                     "+1 Happiness, Earns coins (day only)"),
        BuildingType(POLICE, "Police", 10, BuildingEffects(safety=1),
                     "+1 Safety. Reduces random unhappiness."),
        BuildingType(FIRE, "Fire Station", 10, BuildingEffects(safety=1),
                     "+1 Safety. Reduces random unhappiness."),
    ])


DEFAULT_CATALOG = default_catalog()
