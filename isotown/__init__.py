"""isotown - economic simulation engine for a 12x12 pixel city builder."""
from __future__ import annotations

# Data
from isotown.catalog import (
    BuildingCatalog, BuildingEffects, BuildingType, default_catalog,
    ROAD, HOUSE, CAFE, OFFICE, RESTAURANT, POLICE, FIRE,
)
from isotown.config import CityConfig
from isotown.types import (
    DroppedCoin, PlacedBuilding, Rejected, RejectReason, SnapshotError, WorldCondition,
)
from isotown.state import (
    CityState, add_city_log, initialize_city, set_include_player, set_tax_rate,
    set_world_condition,
)

# Operations
from isotown.grid import (
    count_buildings, grid_key, has_building_within_distance, is_adjacent_to_road,
    is_valid_position, parse_grid_key,
)
from isotown.placement import can_afford, erase_building, find_suggested_tile, place_building
from isotown.simulation import process_tick, should_process_tick
from isotown.coins import collect_dropped_coins
from isotown.status import GameStatus, evaluate_status

# Collaborators
from isotown.clock import TickClock
from isotown.population import CharacterRoster, Character, PopulationSyncBridge, RosterDelta
from isotown.weather import (
    StaticWeatherProvider, WeatherError, WeatherProvider, WeatherReading, WeatherReport,
    WeatherService, determine_world_condition,
)
from isotown.snapshot import SAVE_VERSION, migrate_record, state_from_record, state_to_record
from isotown.export import compute_score, export_json, export_summary

# Session owner
from isotown.commands import (
    CollectCoins, CommandQueue, EraseBuilding, MovePlayer, PlaceBuilding,
    SetIncludePlayer, SetTaxRate, SetWorldCondition,
)
from isotown.engine import CityEngine

__all__ = [
    "BuildingCatalog", "BuildingEffects", "BuildingType", "default_catalog",
    "ROAD", "HOUSE", "CAFE", "OFFICE", "RESTAURANT", "POLICE", "FIRE",
    "CityConfig",
    "DroppedCoin", "PlacedBuilding", "Rejected", "RejectReason", "SnapshotError",
    "WorldCondition",
    "CityState", "add_city_log", "initialize_city", "set_include_player",
    "set_tax_rate", "set_world_condition",
    "count_buildings", "grid_key", "has_building_within_distance",
    "is_adjacent_to_road", "is_valid_position", "parse_grid_key",
    "can_afford", "erase_building", "find_suggested_tile", "place_building",
    "process_tick", "should_process_tick",
    "collect_dropped_coins",
    "GameStatus", "evaluate_status",
    "TickClock",
    "CharacterRoster", "Character", "PopulationSyncBridge", "RosterDelta",
    "StaticWeatherProvider", "WeatherError", "WeatherProvider", "WeatherReading",
    "WeatherReport", "WeatherService", "determine_world_condition",
    "SAVE_VERSION", "migrate_record", "state_from_record", "state_to_record",
    "compute_score", "export_json", "export_summary",
    "CollectCoins", "CommandQueue", "EraseBuilding", "MovePlayer", "PlaceBuilding",
    "SetIncludePlayer", "SetTaxRate", "SetWorldCondition",
    "CityEngine",
]
