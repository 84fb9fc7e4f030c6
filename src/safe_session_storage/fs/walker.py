"""Resilient recursive file listing.

This module walks a directory tree and returns the files it contains,
optionally filtered by a predicate or by extension. Errors raised while
visiting a single entry (access denied, vanished files, a failing predicate)
are logged and that entry is skipped; the walk itself never fails.
"""

import os
from collections import deque
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

import anyio
import structlog

from safe_session_storage.core.constants import MIN_LISTED_FILE_SIZE
from safe_session_storage.core.errors import classify_os_error
from safe_session_storage.fs.models import Entry
from safe_session_storage.fs.paths import PathLike, normalize, to_external
from safe_session_storage.utils.debug import debug

logger = structlog.get_logger(__name__)

Checker = Callable[[Entry], bool]


def _log_skip(path: str, exc: BaseException, *, stage: str) -> None:
    logger.warning(
        "walk_entry_skipped",
        path=to_external(path),
        stage=stage,
        kind=classify_os_error(exc).value,
        error=str(exc),
    )


def _scan_directory(directory: str) -> tuple[list[str], list[Entry]]:
    """List one directory without following symlinks.

    Args:
        directory: Directory to scan, in effective (normalized) form

    Returns:
        Tuple of (subdirectories to descend into, files found)

    Raises:
        OSError: If the directory itself cannot be opened
    """
    subdirs: list[str] = []
    files: list[Entry] = []

    with os.scandir(directory) as it:
        for item in sorted(it, key=lambda d: d.name):
            try:
                if item.is_dir(follow_symlinks=False):
                    subdirs.append(item.path)
                    continue
                if not item.is_file(follow_symlinks=False):
                    # Symlinks, sockets, devices
                    continue
                stat = item.stat(follow_symlinks=False)
            except OSError as exc:
                _log_skip(item.path, exc, stage="stat")
                continue

            files.append(
                Entry(
                    path=Path(to_external(item.path)),
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                )
            )

    return subdirs, files


def _normalize_extensions(extensions: Iterable[str]) -> set[str]:
    return {ext.lstrip(".").upper() for ext in extensions}


def _accept(
    entry: Entry,
    wanted: set[str] | None,
    checker: Checker | None,
) -> bool:
    if checker is not None:
        return bool(checker(entry))
    if wanted is not None:
        return entry.extension in wanted and entry.size >= MIN_LISTED_FILE_SIZE
    return True


async def list_files(
    root: PathLike,
    *,
    extensions: Iterable[str] | None = None,
    checker: Checker | None = None,
) -> list[Entry]:
    """Recursively list the files under root.

    Filters are mutually exclusive and applied in this order:

    1. ``checker``: a file is kept iff the predicate returns True
       (``extensions`` is then ignored).
    2. ``extensions``: a file is kept iff its extension is listed
       (case-insensitive, leading dot optional) and it is at least
       1 MiB in size.
    3. Neither: every file is kept.

    Args:
        root: Directory to walk
        extensions: Optional extensions to keep
        checker: Optional predicate deciding which entries to keep

    Returns:
        Entries for the matching files, paths in external form.
        Directories are traversed but never returned.
    """
    wanted = _normalize_extensions(extensions) if extensions is not None else None
    files: list[Entry] = []
    queue: deque[str] = deque([normalize(root)])

    while queue:
        directory = queue.popleft()
        try:
            subdirs, found = await anyio.to_thread.run_sync(
                _scan_directory, directory
            )
        except OSError as exc:
            _log_skip(directory, exc, stage="scandir")
            continue

        queue.extend(normalize(subdir) for subdir in subdirs)
        for entry in found:
            try:
                keep = _accept(entry, wanted, checker)
            except Exception as exc:
                logger.warning(
                    "walk_checker_failed", path=str(entry.path), error=repr(exc)
                )
                continue
            if keep:
                files.append(entry)

    debug(f"Listed {len(files)} files", root=to_external(root))
    return files
