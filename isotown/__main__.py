"""Headless city session - ``python -m isotown``."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from isotown.engine import CityEngine
from isotown.export import city_stats, compute_score, export_json
from isotown.state import CityState
from isotown.types import Rejected, SnapshotError, WorldCondition

logger = logging.getLogger("isotown")


def _position(text: str) -> tuple[int, int]:
    try:
        xs, ys = text.split(",")
        return int(xs), int(ys)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {text!r}") from None


def _build(text: str) -> tuple[str, int, int]:
    name, sep, where = text.partition("@")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected TYPE@X,Y, got {text!r}")
    return (name.upper(), *_position(where))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="isotown", description="IsoTown - headless city simulation")
    p.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    p.add_argument("--ticks", type=int, default=12, help="Ticks to simulate (default: 12)")
    p.add_argument("--weather", choices=[c.value for c in WorldCondition], default=None,
                   help="World condition for the session")
    p.add_argument("--temperature", type=float, default=None, help="Temperature in C")
    p.add_argument("--tax", type=float, default=None, help="Tax rate, clamped to 0..0.10")
    p.add_argument("--build", type=_build, action="append", default=[],
                   metavar="TYPE@X,Y", help="Place a building before ticking (repeatable)")
    p.add_argument("--erase", type=_position, action="append", default=[],
                   metavar="X,Y", help="Remove a building before ticking (repeatable)")
    p.add_argument("--load", type=Path, default=None, metavar="FILE",
                   help="Restore an engine snapshot before anything else")
    p.add_argument("--save", type=Path, default=None, metavar="FILE",
                   help="Write an engine snapshot when done")
    p.add_argument("--export", type=Path, default=None, metavar="FILE",
                   help="Write the city summary JSON when done")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)
    if args.ticks < 0:
        p.error("--ticks must not be negative")
    return args


def format_tick(engine: CityEngine, state: CityState) -> str:
    phase = "day  " if engine.clock.is_day(state.tick_count) else "night"
    return (
        f"tick {state.tick_count:4d} {phase} | coins {state.coins:3d}"
        f" pop {state.population:3d} jobs {state.jobs:3d} happy {state.happiness:3d}"
        f" | drops {len(state.dropped_coins):2d}"
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    engine = CityEngine(seed=args.seed)
    if args.load is not None:
        try:
            engine.restore(json.loads(args.load.read_text()))
        except (OSError, json.JSONDecodeError, SnapshotError) as exc:
            logger.error("cannot load %s: %s", args.load, exc)
            return 2

    if args.weather is not None:
        engine.set_world_condition(WorldCondition(args.weather), args.temperature)
    if args.tax is not None:
        engine.set_tax_rate(args.tax)

    for x, y in args.erase:
        result = engine.erase(x, y)
        if isinstance(result, Rejected):
            print(f"erase ({x},{y}) rejected: {result.reason.value}")
    for name, x, y in args.build:
        result = engine.place(name, x, y)
        if isinstance(result, Rejected):
            print(f"build {name} ({x},{y}) rejected: {result.reason.value}")

    engine.on_tick(lambda state: print(format_tick(engine, state)))
    engine.on_status(lambda status, state: print(f"game over: {status.value}"))
    engine.run(args.ticks)

    stats = city_stats(engine.state)
    print(
        f"status {engine.status.value} | "
        + " ".join(f"{k} {v}" for k, v in stats.items())
        + f" | score {compute_score(stats)}"
    )
    for message in engine.state.city_log:
        print(f"  - {message}")

    if args.save is not None:
        args.save.write_text(json.dumps(engine.snapshot()))
        logger.info("saved snapshot to %s", args.save)
    if args.export is not None:
        args.export.write_text(export_json(engine.state))
        logger.info("exported summary to %s", args.export)
    return 0


if __name__ == "__main__":
    sys.exit(main())
