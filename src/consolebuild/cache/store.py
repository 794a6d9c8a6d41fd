"""Build cache store: one zip archive per cache key."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from consolebuild.cache.archive import CancelToken, pack, unpack
from consolebuild.cache.keys import cache_key
from consolebuild.cache.locator import CacheLocation, resolve_cache_root
from consolebuild.errors import ArchiveError, CacheNotFoundError
from consolebuild.models import ArchiveResult
from consolebuild.observability import BuildLogger
from consolebuild.options import BuilderOptions

ARCHIVE_EXTENSION = "zip"


class BuildCacheStore:
    """Caches and restores complete console builds on the local machine.

    The key and cache root are resolved once at construction and only when
    caching is enabled. Meant for development machines: a cached build is
    reused even when untracked inputs changed.
    """

    def __init__(
        self,
        options: BuilderOptions,
        logger: BuildLogger | None = None,
        *,
        location: CacheLocation | None = None,
        platform: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.options = options
        self.logger = logger or BuildLogger()
        self.enabled = not options.no_cache
        self.key: str | None = None
        self.root: Path | None = None
        if self.enabled:
            self.key = cache_key(options)
            self.logger.debug(f"Build cache hash is {self.key}", operation="cache_init")
            self.root = resolve_cache_root(platform, env, location=location, logger=self.logger)

    @property
    def entry_path(self) -> Path | None:
        if self.root is None or self.key is None:
            return None
        return self.root / f"{self.key}.{ARCHIVE_EXTENSION}"

    def exists(self) -> bool:
        entry = self.entry_path
        if not self.enabled or entry is None:
            return False
        return entry.is_file()

    def restore(
        self,
        destination_dir: str | Path,
        *,
        cancel: CancelToken | None = None,
    ) -> ArchiveResult:
        entry = self.entry_path
        if entry is None or not entry.is_file():
            raise CacheNotFoundError(
                "No cached build for the current options.",
                hint="Call exists() before restore(), or build without the cache.",
                context={
                    "operation": "cache_restore",
                    "key": self.key or "",
                    "path": str(entry) if entry is not None else "",
                },
            )
        self.logger.debug("Opening cached zip file.", operation="cache_restore")
        return unpack(entry, destination_dir, logger=self.logger, cancel=cancel)

    def store(self, source_dir: str | Path) -> ArchiveResult | None:
        entry = self.entry_path
        if not self.enabled or entry is None:
            return None
        self.logger.debug(f"caching build files to {self.root}", operation="cache_store")
        try:
            entry.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArchiveError(
                "Unable to create the build cache directory.",
                context={"operation": "cache_store", "path": str(entry.parent)},
            ) from exc
        return pack(source_dir, entry, logger=self.logger)
