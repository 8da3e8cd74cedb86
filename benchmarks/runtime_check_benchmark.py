#!/usr/bin/env python3
"""
Overhead of run-time size checks around an einsum call.

Times the same matrix product with and without spliced size checks so the
per-call cost of the dictionary lookups can be compared with the evaluator.
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from indexcheck import CheckContext, CheckOptions

EXPRESSION = "A[i,j] := B[i,k] * C[k,j]"


@dataclass
class BenchmarkResult:
    label: str
    min_s: float
    mean_s: float
    iterations: int


def _time(label: str, fn: Callable[[], object], iterations: int) -> BenchmarkResult:
    fn()
    samples = []
    for _ in range(iterations):
        start = time.perf_counter()
        fn()
        samples.append(time.perf_counter() - start)
    return BenchmarkResult(
        label=label,
        min_s=min(samples),
        mean_s=sum(samples) / len(samples),
        iterations=iterations,
    )


def run(size: int, iterations: int, seed: int) -> list:
    rng = np.random.default_rng(seed)
    b = rng.normal(size=(size, size))
    c = rng.normal(size=(size, size))

    plain = CheckContext(CheckOptions(size=False)).compile(EXPRESSION)
    checked = CheckContext(CheckOptions(size=True)).compile(EXPRESSION)
    ctx = CheckContext()

    return [
        _time("numpy.einsum", lambda: np.einsum("ab,bc->ac", b, c), iterations),
        _time("static checks only", lambda: plain(B=b, C=c), iterations),
        _time("static + size checks", lambda: checked(B=b, C=c), iterations),
        _time("check_runtime alone", lambda: ctx.check_runtime(b, ("i", "k")), iterations),
    ]


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--size", type=int, default=64)
    parser.add_argument("--iterations", type=int, default=2000)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args(argv)

    for result in run(args.size, args.iterations, args.seed):
        print(
            f"{result.label:<24} min {result.min_s * 1e6:9.2f} us"
            f"   mean {result.mean_s * 1e6:9.2f} us   ({result.iterations} iters)"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
