"""Zip packing and entry-at-a-time extraction of build output trees.

``pack`` streams each file into a temporary archive beside the destination
and renames it into place only once the archive is complete, so readers
never see a half-written cache entry.

``unpack`` pulls one entry at a time from the archive and finishes writing
it before asking for the next, so at most one entry stream is open. Files
are extracted into a scratch directory and promoted into the destination
only when every entry succeeded.
"""

from __future__ import annotations

import os
import shutil
import threading
import uuid
import zipfile
import zlib
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from consolebuild.errors import ArchiveError, CacheCancelledError
from consolebuild.models import ArchiveResult
from consolebuild.observability import BuildLogger

COMPRESSION_LEVEL = 9
_COPY_BUFSIZE = 1024 * 64

# Encrypted entries raise RuntimeError, unknown compression methods
# NotImplementedError.
_ENTRY_ERRORS = (
    OSError,
    ArchiveError,
    zipfile.BadZipFile,
    zlib.error,
    RuntimeError,
    NotImplementedError,
)


class CancelToken:
    """Cooperative cancellation flag, safe to trigger from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ── Packing ─────────────────────────────────────────────────────────


def pack(
    source_dir: str | Path,
    archive_path: str | Path,
    *,
    logger: BuildLogger | None = None,
) -> ArchiveResult:
    """Pack the children of *source_dir* into a zip at *archive_path*.

    Files vanishing during the scan are recorded as warnings. Any other
    failure removes the partial archive and raises :class:`ArchiveError`.
    """
    logger = logger or BuildLogger()
    source = Path(source_dir)
    destination = Path(archive_path)
    result = ArchiveResult()

    if not source.is_dir():
        raise ArchiveError(
            "Build output directory does not exist.",
            hint="Run the bundler before caching its output.",
            context={"operation": "pack", "source": str(source)},
        )

    temp_path = destination.with_name(f"{destination.name}.{uuid.uuid4().hex}.tmp")
    try:
        with zipfile.ZipFile(
            temp_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=COMPRESSION_LEVEL,
        ) as archive:
            for child in sorted(source.iterdir()):
                if child.is_file():
                    logger.debug(f"Adding {child.name} file to the cache...", operation="pack")
                    _add_file(archive, child, child.name, result, logger)
                elif child.is_dir():
                    logger.debug(f"Adding {child.name} directory to the cache...", operation="pack")
                    _add_tree(archive, child, child.name, result, logger)
        os.replace(temp_path, destination)
    except (OSError, zipfile.BadZipFile, zlib.error) as exc:
        temp_path.unlink(missing_ok=True)
        result.error = str(exc)
        logger.error("Unable to create build cache archive.", exc, operation="pack")
        raise ArchiveError(
            "Unable to create build cache archive.",
            hint="Check that the cache directory is writable and the build output is readable.",
            context={"operation": "pack", "source": str(source), "archive": str(destination)},
            result=result,
        ) from exc

    result.succeeded = True
    result.bytes_written = destination.stat().st_size
    logger.debug("Cache build saved.", operation="pack")
    logger.debug(f"{result.bytes_written} total bytes.", operation="pack")
    return result


def _add_file(
    archive: zipfile.ZipFile,
    path: Path,
    arcname: str,
    result: ArchiveResult,
    logger: BuildLogger,
) -> None:
    try:
        # ZipFile.write copies in chunks; the file is never read whole.
        archive.write(path, arcname)
    except FileNotFoundError as exc:
        _benign(result, logger, arcname, exc)
        return
    result.completed.append(arcname)


def _add_tree(
    archive: zipfile.ZipFile,
    root: Path,
    arcname: str,
    result: ArchiveResult,
    logger: BuildLogger,
) -> None:
    errors: list[OSError] = []
    for current, dirs, files in os.walk(root, onerror=errors.append):
        dirs.sort()
        rel = PurePosixPath(arcname, Path(current).relative_to(root).as_posix())
        for name in sorted(files):
            _add_file(archive, Path(current, name), str(rel / name), result, logger)
    for exc in errors:
        if not isinstance(exc, FileNotFoundError):
            raise exc
        _benign(result, logger, arcname, exc)


def _benign(result: ArchiveResult, logger: BuildLogger, arcname: str, exc: OSError) -> None:
    message = f"{arcname}: {exc.strerror or exc}"
    result.warnings.append(message)
    logger.warning(f"Skipping vanished path {arcname}.", exc, operation="pack")


# ── Extraction ──────────────────────────────────────────────────────


def iter_entries(archive: zipfile.ZipFile) -> Iterator[zipfile.ZipInfo]:
    """Yield archive entries one by one, in archive order.

    The central directory is read when the archive is opened; what this
    guarantees is that the caller pulls the next entry only after it is done
    with the current one.
    """
    for info in archive.infolist():
        yield info


def is_directory_marker(info: zipfile.ZipInfo) -> bool:
    return info.filename.endswith("/") or info.filename.endswith("\\")


def unpack(
    archive_path: str | Path,
    destination_dir: str | Path,
    *,
    logger: BuildLogger | None = None,
    cancel: CancelToken | None = None,
) -> ArchiveResult:
    """Extract *archive_path* into *destination_dir*, all or nothing."""
    logger = logger or BuildLogger()
    source = Path(archive_path)
    destination = Path(destination_dir)
    result = ArchiveResult()

    try:
        archive = zipfile.ZipFile(source)
    except (OSError, zipfile.BadZipFile) as exc:
        result.error = str(exc)
        raise ArchiveError(
            "Unable to open build cache archive.",
            hint="Delete the cache entry and rebuild.",
            context={"operation": "unpack", "archive": str(source)},
            result=result,
        ) from exc

    with archive:
        scratch = _make_scratch(destination, result)
        try:
            for info in iter_entries(archive):
                if cancel is not None and cancel.cancelled:
                    result.error = "cancelled"
                    raise CacheCancelledError(
                        "Cache restore was cancelled.",
                        context={"operation": "unpack", "archive": str(source)},
                        result=result,
                    )
                if is_directory_marker(info):
                    continue
                try:
                    _extract_entry(archive, info, scratch)
                except _ENTRY_ERRORS as exc:
                    result.failed.append(info.filename)
                    result.warnings.append(f"{info.filename}: {exc}")
                    logger.warning(f"Unable to restore {info.filename}.", exc, operation="unpack")
                    continue
                result.completed.append(info.filename)

            if result.failed:
                total = len(result.failed) + len(result.completed)
                result.error = f"{len(result.failed)} of {total} entries failed"
                raise ArchiveError(
                    "Unable to restore the build from cache.",
                    hint="Delete the cache entry and rebuild.",
                    context={
                        "operation": "unpack",
                        "archive": str(source),
                        "failed": ", ".join(result.failed),
                    },
                    result=result,
                )
            try:
                _promote(scratch, destination)
            except OSError as exc:
                result.error = str(exc)
                raise ArchiveError(
                    "Unable to move restored build into place.",
                    context={"operation": "unpack", "destination": str(destination)},
                    result=result,
                ) from exc
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

    result.succeeded = True
    logger.debug("Build copied from cache.", operation="unpack")
    return result


def _make_scratch(destination: Path, result: ArchiveResult) -> Path:
    # Plain mkdir so the promoted directory gets the umask mode of a fresh build.
    scratch = destination.parent / f".{destination.name}.{uuid.uuid4().hex}.restore"
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        scratch.mkdir()
    except OSError as exc:
        result.error = str(exc)
        raise ArchiveError(
            "Unable to prepare the restore directory.",
            hint="Check that the build output location is writable.",
            context={"operation": "unpack", "destination": str(destination)},
            result=result,
        ) from exc
    return scratch


def _extract_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, root: Path) -> None:
    target = _entry_target(root, info.filename)
    target.parent.mkdir(parents=True, exist_ok=True)
    with archive.open(info) as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst, _COPY_BUFSIZE)


def _entry_target(root: Path, name: str) -> Path:
    rel = PurePosixPath(name.replace("\\", "/"))
    if not rel.parts or rel.is_absolute() or ".." in rel.parts or ":" in rel.parts[0]:
        raise ArchiveError(
            "Archive entry points outside the destination.",
            context={"operation": "unpack", "entry": name},
        )
    return root.joinpath(*rel.parts)


def _promote(scratch: Path, destination: Path) -> None:
    """Move the restored tree into *destination*.

    A missing or empty destination is swapped in with one rename. Otherwise
    each top-level child replaces its counterpart, with the old children kept
    aside until every rename succeeded and put back if one fails.
    """
    if destination.is_dir() and not any(destination.iterdir()):
        destination.rmdir()
    if not destination.exists():
        os.replace(scratch, destination)
        return

    backup = scratch.with_name(f"{scratch.name}.old")
    backup.mkdir()
    moved_aside: list[str] = []
    placed: list[str] = []
    try:
        for child in sorted(scratch.iterdir()):
            target = destination / child.name
            if target.exists() or target.is_symlink():
                os.replace(target, backup / child.name)
                moved_aside.append(child.name)
            os.replace(child, target)
            placed.append(child.name)
    except OSError:
        for name in placed:
            _remove(destination / name)
        for name in moved_aside:
            os.replace(backup / name, destination / name)
        raise
    finally:
        shutil.rmtree(backup, ignore_errors=True)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)
