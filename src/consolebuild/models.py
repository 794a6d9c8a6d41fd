"""Result dataclasses shared by the cache and the build pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class ArchiveResult:
    """Outcome and diagnostic trail of a single pack or unpack operation.

    ``completed`` and ``failed`` list archive entry names (``/``-separated).
    ``warnings`` collects benign problems that did not abort the operation.
    """

    succeeded: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    bytes_written: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "succeeded": self.succeeded,
            "warnings": list(self.warnings),
            "error": self.error,
            "completed": list(self.completed),
            "failed": list(self.failed),
            "bytes_written": self.bytes_written,
        }


@dataclass(slots=True)
class BuildReport:
    cache_hit: bool
    cache_key: str | None
    output_dir: Path
    archive: ArchiveResult | None = None
