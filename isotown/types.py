"""Shared value types for the city engine."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Position = tuple[int, int]


class WorldCondition(str, Enum):
    CLEAR = "CLEAR"
    RAIN = "RAIN"
    WIND = "WIND"
    HEAT = "HEAT"


class RejectReason(str, Enum):
    INVALID_POSITION = "invalid_position"
    TILE_OCCUPIED = "tile_occupied"
    TILE_EMPTY = "tile_empty"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_BUILDING = "unknown_building"


@dataclass(frozen=True, slots=True)
class Rejected:
    """A placement or removal that left the city unchanged.

    Returned instead of a new state; never raised. Falsy, so callers can
    write ``if not result:``.
    """

    reason: RejectReason
    x: int
    y: int
    building: str | None = None

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class PlacedBuilding:
    type: str
    placed_at: int


@dataclass(frozen=True, slots=True)
class DroppedCoin:
    id: str
    x: int
    y: int
    amount: int = 1


class SnapshotError(Exception):
    """Raised when a save record or engine snapshot cannot be restored."""
