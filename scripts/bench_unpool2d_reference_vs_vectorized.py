"""
scripts/bench_unpool2d_reference_vs_vectorized.py

Benchmark script (NOT a unit test) to compare MaxUnpool2D performance between
the two built-in execution strategies:
1) "reference"  (plane-by-plane Python loops)
2) "vectorized" (batched put_along_axis / take_along_axis)

It measures forward/backward through `MaxUnpool2dLayer`, so validation cost
is included in both columns.

Usage examples
--------------
# Default: benchmark one shape
python scripts/bench_unpool2d_reference_vs_vectorized.py

# Benchmark a single shape (H, W are the pooled input extents)
python scripts/bench_unpool2d_reference_vs_vectorized.py --N 8 --C 16 --H 32 --W 32 --k 2 --s 2 --p 0

# Include the duplicate-offset debug check
python scripts/bench_unpool2d_reference_vs_vectorized.py --check-unique-mask

Notes
-----
- The reference strategy is slow on large shapes; keep --repeats small there.
- Masks are drawn with unique offsets per plane so both strategies produce
  identical results; the script asserts this before timing.
"""

from __future__ import annotations

import os
import sys

# Ensure repo_root/src is importable when running this file directly:
# repo_root/
#   src/maxunpool/...
#   scripts/bench_unpool2d_reference_vs_vectorized.py
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import argparse
import statistics
import time
from typing import Callable

import numpy as np

from maxunpool.infrastructure.unpooling import MaxUnpool2dLayer


def _time_one(fn: Callable[[], None], *, warmup: int, repeats: int) -> list[float]:
    for _ in range(warmup):
        fn()

    times: list[float] = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        t1 = time.perf_counter()
        times.append(t1 - t0)
    return times


def _fmt_seconds(x: float) -> str:
    if x < 1e-6:
        return f"{x*1e9:.2f} ns"
    if x < 1e-3:
        return f"{x*1e6:.2f} µs"
    if x < 1:
        return f"{x*1e3:.2f} ms"
    return f"{x:.3f} s"


def _summarize(label: str, samples: list[float]) -> dict[str, float]:
    return {
        "label": label,
        "mean": statistics.mean(samples),
        "median": statistics.median(samples),
        "min": min(samples),
        "max": max(samples),
    }


def _print_row(name: str, reference_s: float, vectorized_s: float) -> None:
    speedup = (reference_s / vectorized_s) if vectorized_s > 0 else float("inf")
    print(
        f"{name:<22}  "
        f"reference(median)={_fmt_seconds(reference_s):>10}  "
        f"vectorized(median)={_fmt_seconds(vectorized_s):>10}  "
        f"speedup={speedup:>7.2f}x"
    )


def _unique_mask(
    rng: np.random.Generator, N: int, C: int, H: int, W: int, plane_up: int
) -> np.ndarray:
    # first H*W positions of a random permutation per plane
    keys = rng.random((N * C, plane_up))
    return np.argsort(keys, axis=1)[:, : H * W].reshape(N, C, H, W)


def bench_one(
    *,
    N: int,
    C: int,
    H: int,
    W: int,
    k: int,
    s: int,
    p: int,
    dtype: np.dtype,
    check_unique_mask: bool,
    warmup: int,
    repeats: int,
) -> None:
    layers = {
        name: MaxUnpool2dLayer.from_pairs(
            k, stride=s, padding=p, strategy=name, check_unique_mask=check_unique_mask
        )
        for name in ("reference", "vectorized")
    }
    top_shape = layers["reference"].reshape((N, C, H, W))
    layers["vectorized"].reshape((N, C, H, W))
    plane_up = top_shape[2] * top_shape[3]

    rng = np.random.default_rng(0)
    x = rng.standard_normal((N, C, H, W)).astype(dtype, copy=False)
    mask = _unique_mask(rng, N, C, H, W, plane_up)
    grad_out = rng.standard_normal(top_shape).astype(dtype, copy=False)

    tops = {name: np.empty(top_shape, dtype=dtype) for name in layers}
    grads = {name: np.empty((N, C, H, W), dtype=dtype) for name in layers}

    for name, layer in layers.items():
        layer.forward(x, mask, tops[name])
        layer.backward(grad_out, mask, True, grads[name])
    np.testing.assert_array_equal(tops["reference"], tops["vectorized"])
    np.testing.assert_array_equal(grads["reference"], grads["vectorized"])

    fwd: dict[str, list[float]] = {}
    bwd: dict[str, list[float]] = {}
    for name, layer in layers.items():
        top = tops[name]
        grad_x = grads[name]

        def run_fwd(layer=layer, top=top) -> None:
            layer.forward(x, mask, top)

        def run_bwd(layer=layer, grad_x=grad_x) -> None:
            layer.backward(grad_out, mask, True, grad_x)

        fwd[name] = _time_one(run_fwd, warmup=warmup, repeats=repeats)
        bwd[name] = _time_one(run_bwd, warmup=warmup, repeats=repeats)

    print("\n" + "=" * 90)
    print(
        f"Shape: N={N} C={C} H={H} W={W} -> {top_shape[2]}x{top_shape[3]}  "
        f"k={k} s={s} p={p}  dtype={np.dtype(dtype).name}  "
        f"check_unique_mask={check_unique_mask}  "
        f"(warmup={warmup}, repeats={repeats})"
    )
    print("-" * 90)
    _print_row(
        "unpool2d_forward",
        statistics.median(fwd["reference"]),
        statistics.median(fwd["vectorized"]),
    )
    _print_row(
        "unpool2d_backward",
        statistics.median(bwd["reference"]),
        statistics.median(bwd["vectorized"]),
    )

    print("-" * 90)
    for label, samples in [
        ("fwd_reference", fwd["reference"]),
        ("fwd_vectorized", fwd["vectorized"]),
        ("bwd_reference", bwd["reference"]),
        ("bwd_vectorized", bwd["vectorized"]),
    ]:
        row = _summarize(label, samples)
        print(
            f"{row['label']:<14} mean={_fmt_seconds(row['mean']):>10} "
            f"median={_fmt_seconds(row['median']):>10} "
            f"min={_fmt_seconds(row['min']):>10} "
            f"max={_fmt_seconds(row['max']):>10}"
        )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--N", type=int, default=4)
    ap.add_argument("--C", type=int, default=8)
    ap.add_argument("--H", type=int, default=16)
    ap.add_argument("--W", type=int, default=16)
    ap.add_argument("--k", type=int, default=2)
    ap.add_argument("--s", type=int, default=2)
    ap.add_argument("--p", type=int, default=0)
    ap.add_argument("--warmup", type=int, default=2)
    ap.add_argument("--repeats", type=int, default=10)
    ap.add_argument(
        "--dtypes",
        nargs="*",
        default=["float32", "float64"],
        choices=["float16", "float32", "float64"],
    )
    ap.add_argument(
        "--check-unique-mask",
        action="store_true",
        help="Run the duplicate-offset debug check on every call.",
    )
    ap.add_argument(
        "--presets",
        action="store_true",
        help="Benchmark a small set of preset shapes instead of a single shape.",
    )
    args = ap.parse_args()

    dtypes = [getattr(np, dt) for dt in args.dtypes]

    if args.presets:
        shapes = [
            (2, 16, 16, 16),
            (4, 32, 32, 32),
            (8, 64, 32, 32),
        ]
    else:
        shapes = [(args.N, args.C, args.H, args.W)]

    for dtype in dtypes:
        for N, C, H, W in shapes:
            bench_one(
                N=N,
                C=C,
                H=H,
                W=W,
                k=args.k,
                s=args.s,
                p=args.p,
                dtype=dtype,
                check_unique_mask=args.check_unique_mask,
                warmup=args.warmup,
                repeats=args.repeats,
            )


if __name__ == "__main__":
    main()
