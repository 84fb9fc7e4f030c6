"""Custom exceptions for safe-session-storage.

This module defines the error taxonomy used by the file-system layer and the
exception raised when the ``"raise"`` error policy is active.
"""

import errno
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of platform file-system failures.

    Attributes:
        PATH_TOO_LONG: Path exceeds the platform length ceiling
        ACCESS_DENIED: Permission or sharing violation
        NOT_FOUND: Entity (or one of its parents) is missing
        CROSS_DEVICE: Rename across devices/volumes is unsupported
        UNKNOWN: Any other platform error
    """

    PATH_TOO_LONG = "path_too_long"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    CROSS_DEVICE = "cross_device"
    UNKNOWN = "unknown"


# Windows system error codes (winerror) mapped onto the taxonomy
_WINERROR_KINDS: dict[int, ErrorKind] = {
    2: ErrorKind.NOT_FOUND,  # ERROR_FILE_NOT_FOUND
    3: ErrorKind.NOT_FOUND,  # ERROR_PATH_NOT_FOUND
    5: ErrorKind.ACCESS_DENIED,  # ERROR_ACCESS_DENIED
    17: ErrorKind.CROSS_DEVICE,  # ERROR_NOT_SAME_DEVICE
    32: ErrorKind.ACCESS_DENIED,  # ERROR_SHARING_VIOLATION
    206: ErrorKind.PATH_TOO_LONG,  # ERROR_FILENAME_EXCED_RANGE
}

_ERRNO_KINDS: dict[int, ErrorKind] = {
    errno.ENAMETOOLONG: ErrorKind.PATH_TOO_LONG,
    errno.EACCES: ErrorKind.ACCESS_DENIED,
    errno.EPERM: ErrorKind.ACCESS_DENIED,
    errno.ENOENT: ErrorKind.NOT_FOUND,
    errno.EXDEV: ErrorKind.CROSS_DEVICE,
}


def classify_os_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised by a platform call onto an ErrorKind.

    Args:
        exc: Exception raised by an ``os``/``shutil`` call

    Returns:
        Matching ErrorKind, ``ErrorKind.UNKNOWN`` when nothing matches
    """
    winerror = getattr(exc, "winerror", None)
    if isinstance(winerror, int) and winerror in _WINERROR_KINDS:
        return _WINERROR_KINDS[winerror]

    if isinstance(exc, OSError) and exc.errno in _ERRNO_KINDS:
        return _ERRNO_KINDS[exc.errno]

    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.ACCESS_DENIED

    return ErrorKind.UNKNOWN


class SafeStorageError(Exception):
    """Base exception for all safe-session-storage errors."""

    pass


class FsOperationError(SafeStorageError):
    """Raised when a file-system operation fails under the ``"raise"`` policy.

    Attributes:
        op: Operation name (e.g. 'rename', 'write')
        path: Path the operation targeted, in external form
        kind: Classified failure kind
        reason: Human-readable description of the underlying error
    """

    def __init__(
        self,
        op: str,
        path: str,
        kind: ErrorKind,
        reason: str,
    ) -> None:
        self.op = op
        self.path = path
        self.kind = kind
        self.reason = reason

        super().__init__(f"{op} failed for '{path}' ({kind.value}): {reason}")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured output."""
        return {
            "error": "fs_operation_failed",
            "op": self.op,
            "path": self.path,
            "kind": self.kind.value,
            "reason": self.reason,
        }

    def __repr__(self) -> str:
        return (
            f"FsOperationError(op={self.op!r}, path={self.path!r}, "
            f"kind={self.kind.value!r})"
        )
