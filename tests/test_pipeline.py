from pathlib import Path

import pytest

from consolebuild.bundler import Bundler
from consolebuild.cache import BuildCacheStore, CacheLocation
from consolebuild.errors import ArchiveError
from consolebuild.observability import BuildLogger
from consolebuild.options import BuilderOptions
from consolebuild.pipeline import build


class _RecordingBundler(Bundler):
    """Bundler that writes a fixed output tree instead of running rollup."""

    runs: int = 0

    def run_bundler(self) -> None:
        type(self).runs += 1
        (self.dest / "styles").mkdir(parents=True)
        (self.dest / "index.html").write_text("<html></html>", encoding="utf-8")
        (self.dest / "styles" / "app.css").write_text("body{}", encoding="utf-8")


@pytest.fixture
def bundler(tmp_path: Path) -> _RecordingBundler:
    _RecordingBundler.runs = 0
    return _RecordingBundler(tmp_path / "work", BuildLogger())


def _cache(tmp_path: Path, options: BuilderOptions, logger: BuildLogger) -> BuildCacheStore:
    return BuildCacheStore(options, logger, location=CacheLocation(base_dir=tmp_path / "profile"))


def test_first_build_bundles_and_stores(tmp_path: Path, bundler: _RecordingBundler) -> None:
    options = BuilderOptions(tag_name="4.0.0")
    cache = _cache(tmp_path, options, bundler.logger)

    report = build(options, bundler, cache=cache)

    assert report.cache_hit is False
    assert report.cache_key == cache.key
    assert report.archive is not None and report.archive.succeeded
    assert cache.exists() is True
    assert _RecordingBundler.runs == 1


def test_second_build_restores_from_cache(tmp_path: Path, bundler: _RecordingBundler) -> None:
    options = BuilderOptions(tag_name="4.0.0")
    build(options, bundler, cache=_cache(tmp_path, options, bundler.logger))
    bundler.clean_output()

    report = build(options, bundler, cache=_cache(tmp_path, options, bundler.logger))

    assert report.cache_hit is True
    assert _RecordingBundler.runs == 1
    assert (bundler.dest / "styles" / "app.css").read_text(encoding="utf-8") == "body{}"


def test_no_cache_always_bundles(tmp_path: Path, bundler: _RecordingBundler) -> None:
    options = BuilderOptions(tag_name="4.0.0", no_cache=True)

    first = build(options, bundler, cache=_cache(tmp_path, options, bundler.logger))
    second = build(options, bundler, cache=_cache(tmp_path, options, bundler.logger))

    assert first.cache_hit is False and second.cache_hit is False
    assert first.archive is None
    assert _RecordingBundler.runs == 2


def test_failed_restore_falls_back_to_bundling(
    tmp_path: Path,
    bundler: _RecordingBundler,
) -> None:
    options = BuilderOptions(tag_name="4.0.0")
    cache = _cache(tmp_path, options, bundler.logger)
    assert cache.entry_path is not None
    cache.entry_path.parent.mkdir(parents=True)
    cache.entry_path.write_bytes(b"truncated")

    report = build(options, bundler, cache=cache)

    assert report.cache_hit is False
    assert _RecordingBundler.runs == 1
    assert (bundler.dest / "index.html").exists()
    assert any(
        r["message"].startswith("Cache restore failed")
        for r in bundler.logger.records_for_level("warning")
    )


def test_failed_store_does_not_fail_build(
    tmp_path: Path,
    bundler: _RecordingBundler,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    options = BuilderOptions(tag_name="4.0.0")
    cache = _cache(tmp_path, options, bundler.logger)

    def _broken_pack(*args: object, **kwargs: object) -> None:
        raise ArchiveError("disk full")

    monkeypatch.setattr("consolebuild.cache.store.pack", _broken_pack)

    report = build(options, bundler, cache=cache)

    assert report.cache_hit is False
    assert report.archive is None
    assert (bundler.dest / "index.html").exists()
    assert bundler.logger.records_for_level("error")


def test_unresolvable_cache_root_builds_without_cache(
    bundler: _RecordingBundler,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for name in ("HOME", "USERPROFILE", "APPDATA"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("consolebuild.cache.locator.sys.platform", "linux")

    report = build(BuilderOptions(tag_name="4.0.0"), bundler)

    assert report.cache_hit is False
    assert report.cache_key is None
    assert report.archive is None
    assert (bundler.dest / "index.html").exists()
    assert _RecordingBundler.runs == 1
    assert any(
        r["message"].startswith("Build cache unavailable")
        for r in bundler.logger.records_for_level("warning")
    )
