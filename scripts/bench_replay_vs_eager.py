# scripts/bench_replay_vs_eager.py
"""
Microbench: eager evaluation vs. graph replay vs. recording + backprop.

What it measures
----------------
- `eager`    : run a small two-layer expression without any tape.
- `replay`   : call a compiled `Function` on the same inputs.
- `record`   : trace the expression under a fresh tape (graph construction).
- `gradient` : `Trainer.train()` followed by one gradient per Var.

Each mode runs warmup iterations (not recorded), then repeats and reports
median / p95 latency.

Example
-------
python -O scripts/bench_replay_vs_eager.py --batch 64 --hidden 32 \
    --warmup 20 --repeats 200 --modes eager replay gradient
"""

from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

import numpy as np

import os
import sys

THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import essay_tensor as et  # noqa: E402


@dataclass
class BenchResult:
    mode: str
    median_ms: float
    p95_ms: float


def _time(fn: Callable[[], object], warmup: int, repeats: int) -> List[float]:
    for _ in range(warmup):
        fn()

    samples: List[float] = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        samples.append((time.perf_counter() - t0) * 1000.0)
    return samples


def _p95(samples: List[float]) -> float:
    ordered = sorted(samples)
    return ordered[min(len(ordered) - 1, int(0.95 * len(ordered)))]


def _build_modes(batch: int, features: int, hidden: int) -> Dict[str, Callable[[], object]]:
    rng = np.random.default_rng(0)
    w1 = et.Var(rng.standard_normal((features, hidden)).astype(np.float32), "w1")
    w2 = et.Var(rng.standard_normal((hidden, 1)).astype(np.float32), "w2")
    x = et.tensor(rng.standard_normal((batch, features)))
    y = et.tensor(rng.standard_normal((batch, 1)))

    def model(inputs, targets):
        h = (inputs @ w1.tensor()).tanh()
        return et.mean_square_error(h @ w2.tensor(), targets)

    function = et.build(model, x, y)
    trainer = et.Trainer(function)

    def record():
        with et.Tape.begin():
            model(x, y)

    def gradient():
        train = trainer.train(x, y)
        train.gradients()

    return {
        "eager": lambda: model(x, y),
        "replay": lambda: function.call(x, y),
        "record": record,
        "gradient": gradient,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--batch", type=int, default=64)
    parser.add_argument("--features", type=int, default=16)
    parser.add_argument("--hidden", type=int, default=32)
    parser.add_argument("--warmup", type=int, default=20)
    parser.add_argument("--repeats", type=int, default=200)
    parser.add_argument(
        "--modes",
        nargs="+",
        default=["eager", "replay", "record", "gradient"],
        choices=["eager", "replay", "record", "gradient"],
    )
    args = parser.parse_args()

    modes = _build_modes(args.batch, args.features, args.hidden)

    results: List[BenchResult] = []
    for mode in args.modes:
        samples = _time(modes[mode], args.warmup, args.repeats)
        results.append(BenchResult(mode, statistics.median(samples), _p95(samples)))

    print(f"batch={args.batch} features={args.features} hidden={args.hidden}")
    print(f"{'mode':<10} {'median ms':>10} {'p95 ms':>10}")
    for r in results:
        print(f"{r.mode:<10} {r.median_ms:>10.3f} {r.p95_ms:>10.3f}")


if __name__ == "__main__":
    main()
