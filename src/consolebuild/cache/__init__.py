"""Local build cache APIs."""

from .archive import CancelToken, pack, unpack
from .keys import KeyFragment, cache_key, key_fragments
from .locator import CacheLocation, resolve_cache_root
from .store import ARCHIVE_EXTENSION, BuildCacheStore

__all__ = [
    "ARCHIVE_EXTENSION",
    "BuildCacheStore",
    "CacheLocation",
    "CancelToken",
    "KeyFragment",
    "cache_key",
    "key_fragments",
    "pack",
    "resolve_cache_root",
    "unpack",
]
