"""Tick processing - one step of the city economy.

Workplaces (cafe, office, restaurant) earn only during the first half of
each day; wind penalises offices off the road network day and night.
Houses pay rent of one coin per house per day, spread across the day's
ticks. Tax applies to income only, never to rent. Without police or
fire stations the city risks a random drop in happiness each tick.
"""
from __future__ import annotations

import logging
import math
import random
from dataclasses import replace

from isotown.catalog import CAFE, EARNING_TYPES, HOUSE, OFFICE, RESTAURANT
from isotown.clock import TickClock
from isotown.config import DEFAULT_CONFIG, CityConfig
from isotown.grid import (
    adjacent_roads,
    count_buildings,
    count_safety,
    has_building_within_distance,
    is_adjacent_to_road,
    iter_buildings,
)
from isotown.population import PopulationSyncBridge
from isotown.state import CityState, add_city_log, clamp_non_negative, clamp_tax_rate
from isotown.types import DroppedCoin, WorldCondition

logger = logging.getLogger(__name__)

LOW_HAPPINESS_MESSAGE = "Happiness is getting low!"


def should_process_tick(state: CityState, now: int,
                        config: CityConfig = DEFAULT_CONFIG) -> bool:
    return TickClock.from_config(config).is_due(state.last_tick_at, now)


def process_tick(
    state: CityState,
    rng: random.Random,
    now: int,
    *,
    config: CityConfig = DEFAULT_CONFIG,
    bridge: PopulationSyncBridge | None = None,
) -> CityState:
    """Advance the city by one tick. Total over any well-formed state."""
    clock = TickClock.from_config(config)
    tick_count = state.tick_count + 1
    is_day = clock.is_day(tick_count)
    tax_rate = clamp_tax_rate(state.tax_rate, config)
    grid = state.grid
    rent_per_tick = math.ceil(count_buildings(grid, HOUSE) / config.day_length)
    safety = count_safety(grid)
    wind = state.world_condition == WorldCondition.WIND

    coin_change = 0
    happiness_change = 0
    for x, y, building in iter_buildings(grid):
        btype = building.type
        if btype == CAFE and is_day:
            if is_adjacent_to_road(grid, x, y, config):
                coin_change += 1
        elif btype == OFFICE:
            on_road = is_adjacent_to_road(grid, x, y, config)
            if is_day and on_road and has_building_within_distance(
                    grid, x, y, HOUSE, config.house_search_distance, config):
                coin_change += 2
            # Wind hits disconnected offices at any hour.
            if wind and not on_road:
                coin_change -= 1
        elif btype == RESTAURANT and is_day:
            if is_adjacent_to_road(grid, x, y, config):
                coin_change += 1
                happiness_change += 1
        elif btype == HOUSE:
            if is_adjacent_to_road(grid, x, y, config):
                happiness_change += 1

    coin_change -= rent_per_tick
    income = max(0, coin_change + rent_per_tick)
    after_tax = math.floor(income * (1 - tax_rate))
    coin_change = after_tax - rent_per_tick

    if state.world_condition == WorldCondition.HEAT and count_buildings(grid, CAFE) == 0:
        happiness_change -= 1

    unrest = safety == 0 and rng.random() < config.safety_event_chance
    if unrest:
        happiness_change -= 1

    new_state = replace(
        state,
        coins=clamp_non_negative(state.coins + coin_change),
        happiness=clamp_non_negative(state.happiness + happiness_change),
        tick_count=tick_count,
        last_tick_at=now,
    )

    if is_day:
        new_state = _spawn_dropped_coins(new_state, rng, config)

    if 0 < new_state.happiness < config.low_happiness_threshold <= state.happiness:
        new_state = add_city_log(new_state, LOW_HAPPINESS_MESSAGE, config)

    logger.debug(
        "tick %d (%s): coins %+d, happiness %+d%s",
        tick_count, "day" if is_day else "night", coin_change, happiness_change,
        ", unrest" if unrest else "",
    )

    if bridge is not None:
        bridge.sync(new_state.population, new_state.grid, new_state.include_player)
    return new_state


def _spawn_dropped_coins(state: CityState, rng: random.Random,
                         config: CityConfig) -> CityState:
    dropped = list(state.dropped_coins)
    spawned = 0
    for x, y, building in iter_buildings(state.grid):
        if len(dropped) >= config.max_dropped_coins:
            break
        if building.type not in EARNING_TYPES:
            continue
        roads = adjacent_roads(state.grid, x, y, config)
        if not roads:
            continue
        if rng.random() >= config.coin_drop_chance:
            continue
        rx, ry = rng.choice(roads)
        dropped.append(DroppedCoin(id=f"drop-{state.tick_count}-{spawned}", x=rx, y=ry))
        spawned += 1
    if not spawned:
        return state
    return replace(state, dropped_coins=tuple(dropped))
