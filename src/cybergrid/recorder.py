"""Session recorder writing a simulation run into a run folder."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from cybergrid.instrumentation import MetricsLogger, StructuredLogger

RUNS_ROOT = Path("runs")


def build_run_dir(name: str, runs_root: Path = RUNS_ROOT) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    run_dir = runs_root / f"{timestamp}_{name}"
    run_dir.mkdir(parents=True, exist_ok=False)
    return run_dir


class SessionRecorder:
    """Writes config, scenario, events, and per-frame metrics for one run."""

    def __init__(self, runs_root: Path = RUNS_ROOT) -> None:
        self.runs_root = runs_root
        self.run_dir: Path | None = None
        self.events: StructuredLogger | None = None
        self.metrics: MetricsLogger | None = None

    def start(self, name: str, scenario: dict[str, Any], config: dict[str, Any]) -> Path:
        self.run_dir = build_run_dir(name, self.runs_root)
        (self.run_dir / "scenario.json").write_text(
            json.dumps(scenario, indent=2), encoding="utf-8"
        )
        with (self.run_dir / "config.yaml").open("w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, sort_keys=True)

        self.events = StructuredLogger(
            text_log_path=self.run_dir / "events.log",
            json_log_path=self.run_dir / "events.jsonl",
        )
        self.metrics = MetricsLogger(self.run_dir / "metrics.jsonl")
        return self.run_dir

    def record_event(self, payload: dict[str, Any]) -> None:
        if not self.events:
            return
        self.events.log_event(payload)

    def record_frame(self, frame: int, status: dict[str, Any]) -> None:
        if not self.metrics:
            return
        values = {
            "nodes": status["nodes"],
            "targets": status["targets"],
            "active_effects": status["active_effects"],
            "min_heart_health": min(status["hearts"].values(), default=0.0),
        }
        for phase, count in status.get("phases", {}).items():
            values[f"phase.{phase}"] = count
        self.metrics.log_many(frame, values, {"time": status["time"]})

    def write_summary(self, summary: dict[str, Any]) -> Path | None:
        if not self.run_dir:
            return None
        path = self.run_dir / "summary.json"
        path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        return path
