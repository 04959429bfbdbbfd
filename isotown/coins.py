"""Dropped coin pickup."""
from __future__ import annotations

from dataclasses import replace

from isotown.state import CityState


def collect_dropped_coins(state: CityState, x: int, y: int) -> tuple[CityState, int]:
    """Pick up every dropped coin on tile (x, y).

    Returns the new state and the amount collected. Zero means nothing was
    there and the state is returned unchanged.
    """
    on_tile = [c for c in state.dropped_coins if c.x == x and c.y == y]
    if not on_tile:
        return state, 0
    collected = sum(c.amount for c in on_tile)
    picked = {c.id for c in on_tile}
    remaining = tuple(c for c in state.dropped_coins if c.id not in picked)
    return replace(state, coins=state.coins + collected, dropped_coins=remaining), collected
