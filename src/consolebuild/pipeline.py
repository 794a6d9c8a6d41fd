"""Build orchestration: restore from cache or bundle and cache the result."""

from __future__ import annotations

from consolebuild.bundler import Bundler
from consolebuild.cache.store import BuildCacheStore
from consolebuild.errors import CacheLocationError, ConsoleBuildError
from consolebuild.models import BuildReport
from consolebuild.observability import BuildLogger
from consolebuild.options import BuilderOptions


def build(
    options: BuilderOptions,
    bundler: Bundler,
    logger: BuildLogger | None = None,
    *,
    cache: BuildCacheStore | None = None,
) -> BuildReport:
    """Produce the console build in ``bundler.dest``.

    A failed restore counts as a cache miss. A failed store is logged and
    does not fail the build, since the fresh output is still valid. When no
    cache directory can be resolved the build runs without the cache.
    """
    logger = logger or bundler.logger
    if cache is None:
        try:
            cache = BuildCacheStore(options, logger)
        except CacheLocationError as exc:
            logger.warning("Build cache unavailable, building without it.", exc, operation="build")
    output_dir = bundler.dest

    if cache is not None and cache.exists():
        logger.info("Restoring build from cache...", operation="build")
        try:
            restored = cache.restore(output_dir)
        except ConsoleBuildError as exc:
            logger.warning("Cache restore failed, rebuilding.", exc, operation="build")
        else:
            return BuildReport(
                cache_hit=True,
                cache_key=cache.key,
                output_dir=output_dir,
                archive=restored,
            )

    bundler.bundle()
    if cache is None:
        return BuildReport(cache_hit=False, cache_key=None, output_dir=output_dir)
    try:
        stored = cache.store(output_dir)
    except ConsoleBuildError as exc:
        logger.error("Unable to cache the build.", exc, operation="build")
        stored = None
    return BuildReport(cache_hit=False, cache_key=cache.key, output_dir=output_dir, archive=stored)
