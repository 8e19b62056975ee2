"""
Structured logging for NTT benchmark and validation runs.

Produces:
  - manifest.json: One-time run metadata (git hash, config, host info)
  - metrics_rank{rank}.jsonl: Timing records, one per measured call
  - checks_rank{rank}.jsonl: PASS/FAIL records from validation checks
"""

import hashlib
import json
import os
import platform
import subprocess
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

import numpy as np


@dataclass
class RunManifest:
    """Run-level metadata, saved once per run."""
    run_id: str
    timestamp: str
    git_commit: str
    config_hash: str
    node_name: str
    python_version: str
    numpy_version: str
    cpu_count: int
    config: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, path: Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


def _get_git_commit() -> str:
    """Get current git commit hash, or 'unknown'."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True, text=True, timeout=5,
        )
        return result.stdout.strip() if result.returncode == 0 else "unknown"
    except (OSError, subprocess.SubprocessError):
        return "unknown"


def _config_hash(config: Dict[str, Any]) -> str:
    """Deterministic hash of config dict."""
    s = json.dumps(config, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()[:16]


def create_manifest(run_id: str, config: Dict[str, Any]) -> RunManifest:
    """Create a RunManifest with auto-detected metadata."""
    return RunManifest(
        run_id=run_id,
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        git_commit=_get_git_commit(),
        config_hash=_config_hash(config),
        node_name=os.environ.get("SLURMD_NODENAME", platform.node()),
        python_version=sys.version,
        numpy_version=np.__version__,
        cpu_count=os.cpu_count() or 1,
        config=config,
    )


class RunLogger:
    """Structured JSONL logger for one process.

    Writes two files:
      - metrics_rank{rank}.jsonl   (timing / perf data)
      - checks_rank{rank}.jsonl    (validation outcomes)
    """

    def __init__(self, output_dir: Path, rank: int = 0):
        self.output_dir = Path(output_dir)
        self.rank = rank

        self.output_dir.mkdir(parents=True, exist_ok=True)

        self._metrics_path = self.output_dir / f"metrics_rank{rank}.jsonl"
        self._checks_path = self.output_dir / f"checks_rank{rank}.jsonl"

        # Append mode so repeated runs accumulate
        self._metrics_f = open(self._metrics_path, 'a')
        self._checks_f = open(self._checks_path, 'a')

        self._metrics_count = 0
        self._checks_count = 0
        self._failures = 0

    def log_metrics(self, record: Dict[str, Any]):
        """Log timing / performance metrics."""
        record["rank"] = self.rank
        record["timestamp"] = time.time()
        self._metrics_f.write(json.dumps(record, default=str) + "\n")
        self._metrics_count += 1

        # Flush periodically
        if self._metrics_count % 100 == 0:
            self._metrics_f.flush()

    def log_check(self, name: str, passed: bool, **detail):
        """Log one validation outcome."""
        record = {"check": name, "passed": bool(passed)}
        record.update(detail)
        record["rank"] = self.rank
        record["timestamp"] = time.time()
        self._checks_f.write(json.dumps(record, default=str) + "\n")
        self._checks_f.flush()
        self._checks_count += 1
        if not passed:
            self._failures += 1

    def close(self):
        """Flush and close all log files."""
        for f in [self._metrics_f, self._checks_f]:
            f.flush()
            f.close()

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "metrics_logged": self._metrics_count,
            "checks_logged": self._checks_count,
            "checks_failed": self._failures,
        }

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
