#!/usr/bin/env python3
"""
Benchmark driver for the nttkit transform engine.

Times forward transforms per kernel and size, then multiply and power,
and writes one metrics record per measurement.

Usage:
    python scripts/run_benchmark.py --config configs/default.yaml
    python scripts/run_benchmark.py --config configs/default.yaml --serial
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from nttkit import (
    DEFAULT_MODULUS, NttEngine, RunLogger, TransformConfig,
    create_manifest, load_config, settings_from_dict,
    transform_config_from_dict,
)


def time_call(fn, repeats: int) -> dict:
    times = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        times.append(time.perf_counter() - t0)
    times = np.array(times)
    return {
        "mean_sec": float(times.mean()),
        "min_sec": float(times.min()),
        "std_sec": float(times.std()),
    }


def run_benchmark(engine: NttEngine, bench_cfg: dict, logger: RunLogger):
    sizes = bench_cfg.get("sizes", [1024])
    repeats = bench_cfg.get("repeats", 5)
    methods = bench_cfg.get("methods", ["recursive", "iterative"])
    exponent = bench_cfg.get("power_exponent", 3)
    rng = np.random.default_rng(bench_cfg.get("seed", 42))
    p = engine.modulus

    for size in sizes:
        if size > engine.order:
            print(f"  skip size {size}: exceeds order {engine.order}")
            continue
        poly = rng.integers(0, min(p, 1 << 31), size=size).tolist()

        outputs = {}
        for method in methods:
            stats = time_call(lambda: engine.transform_with(method, poly, size),
                              repeats)
            outputs[method] = engine.transform_with(method, poly, size)
            logger.log_metrics({"op": "forward", "method": method,
                                "size": size, **stats})
            print(f"  forward {method:>9s} n={size:<8d} "
                  f"{stats['mean_sec'] * 1e3:9.3f} ms")

        agree = len({tuple(v) for v in outputs.values()}) <= 1
        logger.log_check(f"kernels agree n={size}", agree)

        half = size // 2
        if half >= 1:
            a, b = poly[:half], poly[half:]
            stats = time_call(lambda: engine.multiply(a, b), repeats)
            logger.log_metrics({"op": "multiply", "size": size, **stats})
            print(f"  multiply           n={size:<8d} "
                  f"{stats['mean_sec'] * 1e3:9.3f} ms")

        base_len = max(1, size // (2 * exponent))
        base = poly[:base_len]
        stats = time_call(lambda: engine.power(base, exponent), repeats)
        logger.log_metrics({"op": "power", "exponent": exponent,
                            "base_len": base_len, **stats})
        print(f"  power^{exponent:<3d}         n={base_len:<8d} "
              f"{stats['mean_sec'] * 1e3:9.3f} ms")


def main():
    parser = argparse.ArgumentParser(description="nttkit benchmark")
    parser.add_argument("--config", type=str, default="configs/default.yaml")
    parser.add_argument("--output-dir", type=str, default=None)
    parser.add_argument("--serial", action="store_true",
                        help="Disable the thread pool")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.serial:
        config.setdefault("engine", {})["parallel"] = False
    bench_cfg = config.get("benchmark", {}) or {}
    output_dir = Path(args.output_dir or bench_cfg.get("output_dir",
                                                       "runs/benchmark"))

    transform_config = (transform_config_from_dict(config)
                        or TransformConfig.maximal(DEFAULT_MODULUS))
    settings = settings_from_dict(config)

    run_id = f"bench_{int(time.time())}"
    manifest = create_manifest(run_id, config)
    manifest.save(output_dir / "manifest.json")

    print(f"nttkit benchmark {run_id}")
    print(f"  modulus={transform_config.modulus} order={transform_config.order} "
          f"workers={settings.max_workers} parallel={settings.parallel}")

    with NttEngine(transform_config, settings) as engine, \
            RunLogger(output_dir) as logger:
        run_benchmark(engine, bench_cfg, logger)
        print(f"\n  {logger.summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
