"""Path utilities for filesystem operations.

This module turns caller-supplied paths into the form handed to platform
calls and back. On Windows, paths longer than the MAX_PATH safe threshold
are rewritten to the extended-length form (``\\\\?\\``); everywhere else
paths pass through untouched.
"""

import ntpath
import os

from safe_session_storage.core.constants import (
    EXTENDED_PATH_PREFIX,
    EXTENDED_UNC_PREFIX,
    LONG_PATH_THRESHOLD,
)

PathLike = str | os.PathLike[str]


def _is_windows(platform: str | None) -> bool:
    return (platform or os.name) == "nt"


def is_extended(path: PathLike) -> bool:
    """Check whether a path already carries the extended-length prefix."""
    return os.fspath(path).startswith(EXTENDED_PATH_PREFIX)


def normalize(path: PathLike, *, platform: str | None = None) -> str:
    """Return the effective path to hand to a platform file-system call.

    Pure and idempotent: ``normalize(normalize(p)) == normalize(p)``.

    Args:
        path: Path as supplied by the caller
        platform: Override for ``os.name`` (``"nt"`` or ``"posix"``)

    Returns:
        The path, prefixed with the extended-length marker when it is an
        absolute Windows path at or above the safe length threshold.
    """
    raw = os.fspath(path)

    if not _is_windows(platform):
        return raw
    if len(raw) < LONG_PATH_THRESHOLD or is_extended(raw):
        return raw
    # Device namespace paths (\\.\) are left alone
    if raw.startswith("\\\\.\\") or raw.startswith("//./"):
        return raw

    drive, _ = ntpath.splitdrive(raw)
    if not ntpath.isabs(raw) or not drive:
        # Relative and drive-relative paths cannot take the prefix
        return raw

    normalized = ntpath.normpath(raw)
    if normalized.startswith("\\\\"):
        return EXTENDED_UNC_PREFIX + normalized[2:]
    return EXTENDED_PATH_PREFIX + normalized


def to_external(path: PathLike, *, platform: str | None = None) -> str:
    """Strip the extended-length prefix so internal paths never reach callers.

    Args:
        path: Path possibly in extended form
        platform: Override for ``os.name``

    Returns:
        The ordinary form of the path.
    """
    raw = os.fspath(path)

    if not _is_windows(platform):
        return raw
    if raw.startswith(EXTENDED_UNC_PREFIX):
        return "\\\\" + raw[len(EXTENDED_UNC_PREFIX) :]
    if raw.startswith(EXTENDED_PATH_PREFIX):
        return raw[len(EXTENDED_PATH_PREFIX) :]
    return raw


def parent_of(path: PathLike) -> str:
    """Return the parent directory of a path, ``"."`` for bare file names."""
    return os.path.dirname(os.fspath(path)) or os.curdir
