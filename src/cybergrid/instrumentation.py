"""Run logs: human-readable plus JSONL event records, and JSONL metrics."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np

# events that are noteworthy enough for the text log at INFO level
_INFO_EVENTS = {"HEARTBEAT", "HEART_DESTROYED", "TARGET_KILLED", "TERRAIN_PLACED", "NODES_STALLED"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


class StructuredLogger:
    """Writes every event to a text log and a JSONL log side by side."""

    def __init__(self, text_log_path: Path, json_log_path: Path) -> None:
        self.text_log_path = text_log_path
        self.json_log_path = json_log_path

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def log(self, level: str, event: str, **payload: Any) -> None:
        timestamp = payload.pop("ts", None) or self._now()
        record = {
            "timestamp": timestamp,
            "level": level.upper(),
            "event": event,
            "payload": payload,
        }
        summary = " ".join(
            f"{key}={value}" for key, value in payload.items() if key not in {"state", "phases"}
        )
        with self.text_log_path.open("a", encoding="utf-8") as text_file:
            text_file.write(f"{timestamp} [{level.upper()}] {event} {summary}\n")
        with self.json_log_path.open("a", encoding="utf-8") as json_file:
            json_file.write(json.dumps(record, default=_jsonable) + "\n")

    def log_event(self, payload: dict[str, Any]) -> None:
        """Log a simulation event dict keyed by its ``type``."""
        payload = dict(payload)
        event = str(payload.pop("type", "EVENT"))
        level = "info" if event in _INFO_EVENTS else "debug"
        self.log(level, event, **payload)


class MetricsLogger:
    """Appends one JSONL record per metric value."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def log(
        self,
        *,
        step: int,
        metric_name: str,
        value: float | int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.log_many(step, {metric_name: value}, metadata)

    def log_many(
        self,
        step: int,
        values: dict[str, float | int],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        with self.path.open("a", encoding="utf-8") as f:
            for name, value in values.items():
                record = {
                    "timestamp": timestamp,
                    "step": step,
                    "metric_name": name,
                    "value": value,
                    "metadata": metadata or {},
                }
                f.write(json.dumps(record, default=_jsonable) + "\n")


def configure_logging(verbose: bool = False) -> None:
    """Route module loggers to stderr for command line use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
