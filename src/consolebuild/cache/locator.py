"""Platform-specific resolution of the build cache directory."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from consolebuild.errors import CacheLocationError
from consolebuild.observability import BuildLogger

DEFAULT_NAMESPACE = "api-console"
FALLBACK_BASE = "/var/local"


@dataclass(frozen=True, slots=True)
class CacheLocation:
    """Where builds are cached: an app namespace and an optional fixed base.

    When ``base_dir`` is set it replaces the environment and platform lookup,
    which keeps tests away from the real user profile.
    """

    namespace: str = DEFAULT_NAMESPACE
    base_dir: Path | None = None

    @property
    def subpath(self) -> Path:
        return Path(self.namespace, "cache", "builds")


def resolve_cache_root(
    platform: str | None = None,
    env: Mapping[str, str] | None = None,
    *,
    location: CacheLocation | None = None,
    logger: BuildLogger | None = None,
) -> Path:
    """Return ``<base>/<namespace>/cache/builds`` for *platform* and *env*.

    Base resolution order: ``location.base_dir``, a non-empty ``APPDATA``,
    ``~/Library/Preferences`` on macOS, ``~/.config`` on Linux, and
    ``/var/local`` anywhere else.
    """
    platform = sys.platform if platform is None else platform
    env = os.environ if env is None else env
    location = location or CacheLocation()

    if location.base_dir is not None:
        base = Path(location.base_dir)
    elif env.get("APPDATA"):
        base = Path(env["APPDATA"])
    elif platform == "darwin":
        base = _home(platform, env) / "Library" / "Preferences"
    elif platform.startswith("linux"):
        base = _home(platform, env) / ".config"
    else:
        base = Path(FALLBACK_BASE)

    root = base / location.subpath
    if logger is not None:
        logger.debug(f"Setting builds cache path to {root}", operation="resolve_cache_root")
    return root


def _home(platform: str, env: Mapping[str, str]) -> Path:
    home = env.get("HOME") or env.get("USERPROFILE")
    if not home:
        raise CacheLocationError(
            "Cannot determine the build cache directory.",
            hint="Set HOME or APPDATA, or pass an explicit cache base directory.",
            context={"operation": "resolve_cache_root", "platform": platform},
        )
    return Path(home)
