"""Public package entrypoint for the console builder."""

from .bundler import Bundler
from .cache import BuildCacheStore, CacheLocation, CancelToken, cache_key
from .errors import (
    ArchiveError,
    BundlerError,
    CacheCancelledError,
    CacheLocationError,
    CacheNotFoundError,
    ConsoleBuildError,
    ValidationError,
)
from .models import ArchiveResult, BuildReport
from .observability import BuildLogger
from .options import AttributeMatch, BuilderOptions, find_attribute
from .pipeline import build

__all__ = [
    "ArchiveError",
    "ArchiveResult",
    "AttributeMatch",
    "BuildCacheStore",
    "BuildLogger",
    "BuildReport",
    "BuilderOptions",
    "Bundler",
    "BundlerError",
    "CacheCancelledError",
    "CacheLocation",
    "CacheLocationError",
    "CacheNotFoundError",
    "CancelToken",
    "ConsoleBuildError",
    "ValidationError",
    "build",
    "cache_key",
    "find_attribute",
]
