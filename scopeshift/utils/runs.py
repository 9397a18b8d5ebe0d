from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class RunPaths:
    run_dir: Path
    raw_dir: Path
    artifacts_dir: Path


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


def prepare_run_dirs(runs_dir: Path, run_id: str | None = None) -> RunPaths:
    run_dir = Path(runs_dir) / (run_id or utc_timestamp())
    paths = RunPaths(
        run_dir=run_dir,
        raw_dir=run_dir / "raw",
        artifacts_dir=run_dir / "artifacts",
    )
    for path in [paths.raw_dir, paths.artifacts_dir]:
        path.mkdir(parents=True, exist_ok=True)
    return paths
