"""Tests for isotown.engine - the session owner."""

import json

import pytest

from isotown import (
    CAFE, HOUSE, OFFICE, ROAD,
    CityConfig, CityEngine, CollectCoins, GameStatus, MovePlayer, PlaceBuilding, Rejected,
    RejectReason, SetTaxRate, SnapshotError, StaticWeatherProvider, WeatherReading,
    WeatherService, WorldCondition,
)

START = 1_000_000


class FakeClock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now


def make_engine(seed=42, config=None, **kwargs):
    clock = FakeClock()
    engine = CityEngine(config=config or CityConfig(), seed=seed, clock=clock, **kwargs)
    return engine, clock


def build_town(engine):
    for btype, x, y in [(ROAD, 0, 0), (ROAD, 1, 0), (ROAD, 2, 0),
                        (HOUSE, 0, 1), (CAFE, 1, 1), (ROAD, 3, 0)]:
        assert engine.place(btype, x, y)


def with_drop(engine, x, y, amount=1):
    data = engine.snapshot()
    data["city"]["droppedCoins"] = [{"id": "gift", "x": x, "y": y, "amount": amount}]
    engine.restore(data)


class TestCreation:
    def test_initial_state(self):
        engine, _ = make_engine()
        assert engine.state.coins == 20
        assert engine.state.happiness == 10
        assert engine.state.last_tick_at == START
        assert engine.status is GameStatus.IN_PROGRESS

    def test_player_in_roster(self):
        engine, _ = make_engine()
        assert engine.roster.player is not None
        assert len(engine.roster) == 1

    def test_random_seed_when_omitted(self):
        engine = CityEngine(clock=FakeClock())
        assert isinstance(engine.seed, int)


class TestActions:
    def test_place_updates_state_and_roster(self):
        engine, _ = make_engine()
        result = engine.place(HOUSE, 2, 2)
        assert result is engine.state
        assert engine.state.coins == 17
        assert engine.state.population == 2
        assert len(engine.roster.npcs()) == 2

    def test_rejected_place_keeps_state(self):
        engine, _ = make_engine()
        before = engine.state
        result = engine.place("CASTLE", 2, 2)
        assert isinstance(result, Rejected)
        assert result.reason is RejectReason.UNKNOWN_BUILDING
        assert engine.state is before

    def test_erase_refunds_and_shrinks_roster(self):
        engine, _ = make_engine()
        engine.place(HOUSE, 2, 2)
        engine.erase(2, 2)
        assert engine.state.coins == 18
        assert engine.state.population == 0
        assert engine.roster.npcs() == []

    def test_erase_empty_tile(self):
        engine, _ = make_engine()
        assert engine.erase(2, 2).reason is RejectReason.TILE_EMPTY

    def test_collect(self):
        engine, _ = make_engine()
        with_drop(engine, 4, 4, amount=3)
        assert engine.collect(4, 4) == 3
        assert engine.state.coins == 23
        assert engine.state.dropped_coins == ()

    def test_move_player_collects(self):
        engine, _ = make_engine()
        with_drop(engine, 5, 6)
        assert engine.move_player("left") == 1
        assert engine.state.coins == 21

    def test_move_without_player(self):
        engine, _ = make_engine()
        engine.set_include_player(False)
        assert engine.state.include_player is False
        assert engine.roster.player is None
        assert engine.move_player("up") == 0

    def test_tax_rate_clamped(self):
        engine, _ = make_engine()
        assert engine.set_tax_rate(0.5) == 0.10
        assert engine.set_tax_rate(-1) == 0.0

    def test_world_condition(self):
        engine, _ = make_engine()
        engine.set_world_condition(WorldCondition.HEAT, 36.0)
        assert engine.state.world_condition is WorldCondition.HEAT
        assert engine.state.world_temperature == 36.0

    def test_suggested_tile(self):
        engine, _ = make_engine()
        assert engine.suggested_tile() == (6, 6)
        engine.place(ROAD, 6, 6)
        assert engine.suggested_tile() == (5, 6)


class TestWeather:
    def test_refresh_applies_condition(self):
        provider = StaticWeatherProvider(WeatherReading(wind_speed=40.0, temperature=18.0))
        clock = FakeClock()
        engine = CityEngine(seed=1, clock=clock, weather=WeatherService(provider, clock=clock))
        report = engine.refresh_weather()
        assert report.condition is WorldCondition.WIND
        assert engine.state.world_condition is WorldCondition.WIND
        assert engine.state.world_temperature == 18.0

    def test_refresh_without_service(self):
        engine, _ = make_engine()
        with pytest.raises(RuntimeError):
            engine.refresh_weather()


class TestCommands:
    def test_submit_then_drain(self):
        engine, _ = make_engine()
        engine.submit(PlaceBuilding(ROAD, 0, 0))
        engine.submit(PlaceBuilding(ROAD, 0, 0))
        engine.submit(SetTaxRate(0.07))
        assert engine.state.grid == {}
        results = engine.drain()
        assert [type(r).__name__ for _, r in results] == ["CityState", "Rejected", "float"]
        assert engine.state.tax_rate == 0.07

    def test_advance_drains_even_when_not_due(self):
        engine, _ = make_engine()
        with_drop(engine, 5, 6)
        engine.submit(MovePlayer("left"))
        engine.submit(CollectCoins(9, 9))
        assert engine.advance() is False
        assert engine.state.coins == 21


class TestTicking:
    def test_advance_waits_for_interval(self):
        engine, clock = make_engine()
        clock.now = START + 4999
        assert engine.advance() is False
        assert engine.seconds_until_next() == 1
        clock.now = START + 5000
        assert engine.advance() is True
        assert engine.state.tick_count == 1
        assert engine.state.last_tick_at == START + 5000
        assert engine.advance() is False

    def test_step_forces_tick(self):
        engine, _ = make_engine()
        assert engine.step() is True
        assert engine.state.tick_count == 1

    def test_step_drains_before_ticking(self):
        engine, _ = make_engine()
        seen = []
        engine.on_tick(lambda state: seen.append((state.population, state.tax_rate)))
        engine.submit(PlaceBuilding(HOUSE, 4, 4))
        engine.submit(SetTaxRate(0.05))
        assert engine.step() is True
        assert seen == [(2, 0.05)]

    def test_step_drains_after_game_over(self):
        engine, _ = make_engine(config=CityConfig(goal_population=0, goal_happiness=0,
                                                  goal_coins=0))
        engine.run(1)
        engine.submit(SetTaxRate(0.05))
        assert engine.step() is False
        assert engine.state.tax_rate == 0.05

    def test_run_uses_game_time(self):
        engine, clock = make_engine()
        assert engine.run(5) == 5
        assert engine.state.tick_count == 5
        assert engine.state.last_tick_at == START + 5 * 5000
        assert clock.now == START

    def test_tick_hook(self):
        engine, _ = make_engine()
        seen = []
        engine.on_tick(lambda state: seen.append(state.tick_count))
        engine.run(3)
        assert seen == [1, 2, 3]

    def test_stop_from_hook(self):
        engine, _ = make_engine()
        engine.on_tick(lambda state: engine.stop() if state.tick_count == 2 else None)
        assert engine.run(10) == 2

    def test_win_ends_run(self):
        engine, _ = make_engine(config=CityConfig(goal_population=0, goal_happiness=0,
                                                  goal_coins=0))
        statuses = []
        engine.on_status(lambda status, state: statuses.append((status, state.tick_count)))
        assert engine.run(10) == 1
        assert engine.status is GameStatus.WON
        assert statuses == [(GameStatus.WON, 1)]
        assert engine.step() is False
        assert engine.advance(START + 10**9) is False

    def test_loss_at_zero_happiness(self):
        engine, _ = make_engine()
        data = engine.snapshot()
        data["city"]["happiness"] = 0
        engine.restore(data)
        assert engine.run(5) == 1
        assert engine.status is GameStatus.LOST

    def test_new_game_resets(self):
        engine, clock = make_engine(config=CityConfig(goal_population=0, goal_happiness=0,
                                                      goal_coins=0))
        statuses = []
        engine.on_status(lambda status, state: statuses.append(status))
        engine.place(HOUSE, 1, 1)
        engine.run(1)
        clock.now = START + 123
        state = engine.new_game(WorldCondition.RAIN)
        assert engine.status is GameStatus.IN_PROGRESS
        assert statuses == [GameStatus.WON, GameStatus.IN_PROGRESS]
        assert state.grid == {}
        assert state.coins == 20
        assert state.last_tick_at == START + 123
        assert state.world_condition is WorldCondition.RAIN
        assert engine.roster.npcs() == []


class TestSnapshot:
    def test_json_compatible(self):
        engine, _ = make_engine()
        build_town(engine)
        engine.run(3)
        data = engine.snapshot()
        assert json.loads(json.dumps(data)) == data

    def test_restore_resumes_identically(self):
        engine, _ = make_engine(seed=5)
        build_town(engine)
        engine.place(OFFICE, 2, 1)
        engine.run(6)
        data = json.loads(json.dumps(engine.snapshot()))
        engine.run(18)

        other, _ = make_engine(seed=999)
        other.restore(data)
        assert other.seed == 5
        other.run(18)
        assert other.state == engine.state
        assert other.roster.snapshot() == engine.roster.snapshot()

    def test_same_seed_same_city(self):
        a, _ = make_engine(seed=8)
        b, _ = make_engine(seed=8)
        for engine in (a, b):
            build_town(engine)
            engine.run(24)
        assert a.state == b.state

    @pytest.mark.parametrize("data", [[1, 2], None, "city", 7])
    def test_non_object_snapshot(self, data):
        engine, _ = make_engine()
        with pytest.raises(SnapshotError, match="object"):
            engine.restore(data)

    def test_bad_version(self):
        engine, _ = make_engine()
        data = engine.snapshot()
        data["version"] = 99
        with pytest.raises(SnapshotError, match="version"):
            engine.restore(data)

    @pytest.mark.parametrize("field,value", [
        ("seed", "abc"), ("status", "paused"), ("rng_state", [1, 2]), ("roster", {}),
    ])
    def test_invalid_fields_leave_engine_untouched(self, field, value):
        engine, _ = make_engine()
        engine.place(HOUSE, 3, 3)
        before = engine.state
        data = engine.snapshot()
        data[field] = value
        with pytest.raises(SnapshotError):
            engine.restore(data)
        assert engine.state is before
        assert engine.seed == 42

    def test_invalid_city(self):
        engine, _ = make_engine()
        data = engine.snapshot()
        data["city"]["coins"] = -5
        with pytest.raises(SnapshotError, match="coins"):
            engine.restore(data)
