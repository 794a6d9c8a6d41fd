"""Structured logging for build and cache operations."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(slots=True)
class BuildLogger:
    """Records structured events and mirrors them to :mod:`logging`.

    The four channels (``debug``, ``info``, ``warning``, ``error``) are the
    interface the cache and bundler consume. Records stay in memory so a run
    can be inspected or dumped as JSON lines afterwards.
    """

    name: str = "consolebuild"
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        logging.getLogger(self.name).log(_LEVELS.get(level, logging.INFO), message)

    def debug(self, message: str, *, operation: str | None = None) -> None:
        self.log(operation=operation, message=message, level="debug")

    def info(self, message: str, *, operation: str | None = None) -> None:
        self.log(operation=operation, message=message, level="info")

    def warning(self, message: str, *payload: object, operation: str | None = None) -> None:
        self.log(operation=operation, message=message, level="warning", extra=_payload(payload))

    def error(self, message: str, *payload: object, operation: str | None = None) -> None:
        self.log(operation=operation, message=message, level="error", extra=_payload(payload))

    def records_for_level(self, level: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("level") == level]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True, default=str) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


def _payload(items: tuple[object, ...]) -> dict[str, Any] | None:
    if not items:
        return None
    return {"payload": [repr(item) for item in items]}
