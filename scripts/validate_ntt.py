#!/usr/bin/env python3
"""
Validation script for the nttkit transform engine.

Runs a sequence of checks for every prime in the good-prime bank:
1. Root validity (root^order == 1, root^(order/2) != 1)
2. Transform involution (inverse(forward(P)) == P)
3. Recursive / iterative / naive equivalence across the crossover
4. Convolution against schoolbook multiplication
5. Power / cutoff consistency

Usage:
    python scripts/validate_ntt.py
    python scripts/validate_ntt.py --order 4096 --log-dir runs/validate
"""

import argparse
import os
import random
import sys
import time
import traceback
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from nttkit import (
    GOOD_PRIMES, EngineSettings, NttEngine, RunLogger, TransformConfig,
    create_manifest,
)


def section(name: str):
    print(f"\n{'='*60}")
    print(f"  {name}")
    print(f"{'='*60}")


def check(name: str, passed: bool, detail: str = "", logger=None):
    status = "PASS" if passed else "FAIL"
    mark = "✓" if passed else "✗"
    print(f"  [{status}] {mark} {name}" + (f" -- {detail}" if detail else ""))
    if logger is not None:
        logger.log_check(name, passed, detail=detail)
    return passed


def schoolbook(a, b, p):
    out = [0] * (len(a) + len(b) - 1)
    for i, x in enumerate(a):
        for j, y in enumerate(b):
            out[i + j] = (out[i + j] + x * y) % p
    return out


def validate_prime(p: int, order: int, rng: random.Random, logger) -> list:
    results = []
    settings = EngineSettings(recursive_crossover=64, parallel_threshold=16)

    config = TransformConfig.with_order(p, order)
    try:
        config.verify()
        results.append(check(f"[{p}] root valid", True,
                             f"root={config.root} order={config.order}",
                             logger))
    except Exception as e:
        results.append(check(f"[{p}] root valid", False, str(e), logger))

    with NttEngine(config, settings) as engine:
        # Involution
        ok = True
        for size in [1, 2, 8, 64, 256]:
            poly = [rng.randrange(p) for _ in range(size)]
            back = engine.inverse_transform(engine.forward_transform(poly))
            ok = ok and back == poly
        results.append(check(f"[{p}] involution", ok, logger=logger))

        # Kernel equivalence on both sides of the crossover
        ok = True
        for size in [2, 16, 32, 64, 128, 512]:
            poly = [rng.randrange(p) for _ in range(size)]
            rec = engine.transform_with("recursive", poly, size)
            it = engine.transform_with("iterative", poly, size)
            ok = ok and rec == it
            if size <= 64:
                ok = ok and rec == engine.transform_with("naive", poly, size)
        results.append(check(f"[{p}] kernel equivalence", ok, logger=logger))

        # Convolution
        a = [rng.randrange(p) for _ in range(37)]
        b = [rng.randrange(p) for _ in range(21)]
        want = schoolbook(a, b, p)
        got = engine.multiply(a, b)
        ok = got[:len(want)] == want and not any(got[len(want):])
        results.append(check(f"[{p}] multiply vs schoolbook", ok,
                             f"{len(a)}x{len(b)}", logger))

        # Power / cutoff
        a = [rng.randrange(p) for _ in range(9)]
        full = engine.power(a, 3)
        ok = all(engine.power_cutoff(a, 3, d) == full[:d + 1]
                 for d in (0, 5, 24))
        results.append(check(f"[{p}] power_cutoff consistent", ok,
                             logger=logger))
    return results


def main():
    parser = argparse.ArgumentParser(description="Validate nttkit engine")
    parser.add_argument("--order", type=int, default=1 << 12,
                        help="Transform order per prime (power of two)")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-dir", type=str, default=None,
                        help="Write checks JSONL and manifest here")
    args = parser.parse_args()

    print("nttkit Validation Suite")
    print(f"Python: {sys.version}")
    print(f"CWD: {os.getcwd()}")

    rng = random.Random(args.seed)
    logger = RunLogger(Path(args.log_dir)) if args.log_dir else None
    if logger is not None:
        manifest = create_manifest(
            run_id=f"validate_{int(time.time())}",
            config={"order": args.order, "seed": args.seed,
                    "primes": GOOD_PRIMES},
        )
        manifest.save(Path(args.log_dir) / "manifest.json")

    results = []
    for p in GOOD_PRIMES:
        section(f"Prime {p}")
        try:
            results.extend(validate_prime(p, args.order, rng, logger))
        except Exception as e:
            results.append(check(f"[{p}] validation", False, str(e), logger))
            traceback.print_exc()

    section("Summary")
    n_pass = sum(results)
    print(f"  {n_pass}/{len(results)} checks passed")
    if logger is not None:
        logger.close()
    return 0 if n_pass == len(results) else 1


if __name__ == "__main__":
    sys.exit(main())
