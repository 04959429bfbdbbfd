"""Population sync bridge - a stable-ID roster of city characters.

Placement, removal and ticks notify the bridge with the current population.
The roster grows or shrinks its NPC list to match and reports only the ids
that were added or removed; surviving characters keep their identity.
"""
from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from isotown.catalog import CAFE, HOUSE, OFFICE, ROAD
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.grid import Grid, is_valid_position, iter_buildings, type_at
from isotown.types import Position, SnapshotError

PLAYER_ID = 0

RESIDENT = "resident"
WORKER = "worker"
BARISTA = "barista"
PLAYER = "player"

_DIRECTIONS: dict[str, tuple[int, int]] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}


@dataclass
class Character:
    id: int
    role: str
    x: int
    y: int
    is_player: bool = False
    home: list[int] | None = None
    workplace: list[int] | None = None


@dataclass(frozen=True)
class RosterDelta:
    added: tuple[int, ...] = ()
    removed: tuple[int, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.added or self.removed)


@runtime_checkable
class PopulationSyncBridge(Protocol):
    """One-way notification of the population after a state change."""

    def sync(self, population: int, grid: Grid, include_player: bool) -> RosterDelta:
        ...


class CharacterRoster:
    """NPC arena keyed by never-reused ids, plus the optional player."""

    def __init__(self, rng: random.Random | None = None,
                 config: CityConfig = DEFAULT_CONFIG) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._config = config
        self._npcs: dict[int, Character] = {}
        self._player: Character | None = None
        self._next_id = PLAYER_ID + 1

    # -- queries --

    @property
    def player(self) -> Character | None:
        return self._player

    def npcs(self) -> list[Character]:
        return list(self._npcs.values())

    def get(self, cid: int) -> Character:
        if cid == PLAYER_ID and self._player is not None:
            return self._player
        return self._npcs[cid]

    def __len__(self) -> int:
        return len(self._npcs) + (1 if self._player is not None else 0)

    # -- bridge --

    def sync(self, population: int, grid: Grid, include_player: bool) -> RosterDelta:
        added: list[int] = []
        removed: list[int] = []
        target = max(0, population)

        while len(self._npcs) < target:
            npc = self._spawn_npc(self._next_id, grid)
            self._next_id += 1
            self._npcs[npc.id] = npc
            added.append(npc.id)

        if len(self._npcs) > target:
            # Newest NPCs leave first.
            for cid in sorted(self._npcs, reverse=True)[:len(self._npcs) - target]:
                del self._npcs[cid]
                removed.append(cid)

        if include_player and self._player is None:
            self._player = Character(
                id=PLAYER_ID, role=PLAYER,
                x=self._config.width // 2, y=self._config.height // 2,
                is_player=True,
            )
            added.insert(0, PLAYER_ID)
        elif not include_player and self._player is not None:
            self._player = None
            removed.insert(0, PLAYER_ID)

        return RosterDelta(added=tuple(added), removed=tuple(removed))

    def _spawn_npc(self, cid: int, grid: Grid) -> Character:
        houses: list[list[int]] = []
        cafes: list[list[int]] = []
        offices: list[list[int]] = []
        for x, y, building in iter_buildings(grid):
            if building.type == HOUSE:
                houses.append([x, y])
            elif building.type == CAFE:
                cafes.append([x, y])
            elif building.type == OFFICE:
                offices.append([x, y])

        home = houses[cid % len(houses)] if houses else None
        role = RESIDENT
        workplace = None
        roll = self._rng.random()
        if roll < 0.5 and offices:
            role = WORKER
            workplace = offices[cid % len(offices)]
        elif roll < 0.8:
            role = RESIDENT
        elif cafes:
            role = BARISTA
            workplace = cafes[cid % len(cafes)]

        x, y = self._spawn_point(home)
        return Character(id=cid, role=role, x=x, y=y, home=home, workplace=workplace)

    def _spawn_point(self, home: list[int] | None) -> Position:
        width, height = self._config.width, self._config.height
        if home is not None:
            x = home[0] + (1 if self._rng.random() < 0.5 else -1)
            y = home[1] + (1 if self._rng.random() < 0.5 else -1)
            return max(0, min(width - 1, x)), max(0, min(height - 1, y))
        edge = self._rng.randrange(4)
        if edge == 0:
            return self._rng.randrange(width), 0
        if edge == 1:
            return width - 1, self._rng.randrange(height)
        if edge == 2:
            return self._rng.randrange(width), height - 1
        return 0, self._rng.randrange(height)

    # -- player --

    def move_player(self, direction: str, grid: Grid) -> Position | None:
        """Step the player one tile; buildings other than roads block.

        Returns the player's position afterwards, or None without a player.
        """
        if direction not in _DIRECTIONS:
            raise ValueError(f"Unknown direction {direction!r}")
        player = self._player
        if player is None:
            return None
        dx, dy = _DIRECTIONS[direction]
        nx = max(0, min(self._config.width - 1, player.x + dx))
        ny = max(0, min(self._config.height - 1, player.y + dy))
        if is_valid_position(nx, ny, self._config):
            occupant = type_at(grid, nx, ny)
            if occupant is None or occupant == ROAD:
                player.x, player.y = nx, ny
        return player.x, player.y

    # -- snapshot / restore --

    def snapshot(self) -> dict[str, Any]:
        return {
            "next_id": self._next_id,
            "player": dataclasses.asdict(self._player) if self._player else None,
            "npcs": [dataclasses.asdict(c) for c in self._npcs.values()],
        }

    def restore(self, data: dict[str, Any]) -> None:
        try:
            npcs = {int(d["id"]): Character(**d) for d in data["npcs"]}
            player = Character(**data["player"]) if data.get("player") else None
            next_id = int(data["next_id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Invalid roster snapshot: {exc}") from exc
        if npcs and next_id <= max(npcs):
            raise SnapshotError("Roster next_id must exceed every NPC id")
        self._npcs = npcs
        self._player = player
        self._next_id = next_id
