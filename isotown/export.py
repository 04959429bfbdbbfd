"""City summary export and leaderboard scoring."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping

from isotown.grid import iter_buildings
from isotown.snapshot import SAVE_VERSION
from isotown.state import CityState


def city_stats(state: CityState) -> dict[str, int]:
    return {
        "coins": state.coins,
        "population": state.population,
        "jobs": state.jobs,
        "happiness": state.happiness,
    }


def export_summary(state: CityState, exported_at: datetime | None = None) -> dict[str, Any]:
    when = exported_at if exported_at is not None else datetime.now(timezone.utc)
    return {
        "version": SAVE_VERSION,
        "exportedAt": when.isoformat(),
        "stats": city_stats(state),
        "buildings": [
            {"x": x, "y": y, "type": b.type, "placedAt": b.placed_at}
            for x, y, b in iter_buildings(state.grid)
        ],
        "worldCondition": state.world_condition.value,
    }


def export_json(state: CityState, exported_at: datetime | None = None) -> str:
    return json.dumps(export_summary(state, exported_at), indent=2)


def compute_score(stats: Mapping[str, Any]) -> int:
    """Leaderboard score: jobs weigh triple, population double."""
    def stat(name: str) -> int:
        return int(stats.get(name) or 0)

    return stat("coins") + stat("population") * 2 + stat("jobs") * 3 + stat("happiness")
