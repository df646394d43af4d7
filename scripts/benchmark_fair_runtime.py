#!/usr/bin/env python3
"""Run the career fair headless for N frames and report frame latency and outcomes."""

from __future__ import annotations

import argparse
import json
import logging
import math
import random
import statistics
import sys
import time
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def percentile(values: list[float], q: float) -> float:
    if not values:
        return 0.0
    points = sorted(values)
    if len(points) == 1:
        return points[0]
    pos = max(0.0, min(1.0, q)) * (len(points) - 1)
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return points[low]
    frac = pos - low
    return points[low] * (1.0 - frac) + points[high] * frac


def summarize_latencies(values: list[float]) -> dict[str, Any]:
    if not values:
        return {"count": 0, "mean_ms": 0.0, "p50_ms": 0.0, "p95_ms": 0.0, "max_ms": 0.0}
    return {
        "count": len(values),
        "mean_ms": round(statistics.fmean(values), 3),
        "p50_ms": round(percentile(values, 0.5), 3),
        "p95_ms": round(percentile(values, 0.95), 3),
        "max_ms": round(max(values), 3),
    }


class SimulatedClock:
    """Advances a fixed step per frame so close delays elapse without sleeping."""

    def __init__(self, step_ms: int) -> None:
        self.now_ms = 0
        self.step_ms = step_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self) -> None:
        self.now_ms += self.step_ms


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a headless career fair benchmark")
    parser.add_argument("--frames", type=int, default=600, help="Frames to process")
    parser.add_argument("--size", type=int, default=10, help="Grid edge length")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for stats, movement and scoring")
    parser.add_argument("--frame-ms", type=int, default=100, help="Simulated milliseconds per frame")
    parser.add_argument("--extra-students", type=int, default=0, help="Students scattered on top of the default floor")
    parser.add_argument(
        "--output",
        default="data/perf/fair_runtime_benchmark.json",
        help="JSON output path",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Keep engine logs enabled during the run",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if args.frames < 1:
        raise SystemExit("--frames must be >= 1")
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    from packages.fairsim_core.sim.runner import FairSimulation
    from packages.fairsim_core.sim.settings import SimulationSettings
    from packages.fairsim_core.sim.state import STUDENT

    rng = random.Random(args.seed)
    clock = SimulatedClock(max(1, args.frame_ms))
    simulation = FairSimulation(
        size=args.size,
        settings=SimulationSettings.from_env(),
        dialogue=None,
        clock=clock,
        rng=rng,
    )
    simulation.seed_default_world()
    placed = 0
    attempts = 0
    while placed < args.extra_students and attempts < args.extra_students * 20:
        attempts += 1
        if simulation.add_agent(rng.randrange(args.size), rng.randrange(args.size), STUDENT) is not None:
            placed += 1

    frame_ms: list[float] = []
    started = 0
    closed = 0
    for _ in range(args.frames):
        t0 = time.perf_counter()
        result = simulation.process_frame()
        frame_ms.append((time.perf_counter() - t0) * 1000.0)
        started += len(result["started"])
        closed += len(result["closed"])
        clock.advance()

    output = {
        "frames": simulation.frame_count,
        "size": simulation.size,
        "agents": len(simulation.agents),
        "seed": args.seed,
        "conversations_started": started,
        "conversations_closed": closed,
        "conversation_stats": simulation.conversations.get_stats(),
        "leaderboard": simulation.leaderboard(),
        "latency_ms": {"process_frame": summarize_latencies(frame_ms)},
        "timestamp_utc_epoch": time.time(),
    }

    output_path = Path(args.output).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(output, indent=2) + "\n", encoding="utf-8")
    print(json.dumps(output, indent=2))
    print(f"\nWrote benchmark report: {output_path}")


if __name__ == "__main__":
    main()
