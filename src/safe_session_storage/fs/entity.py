"""Best-effort operations on a single file-system entity.

Every operation normalizes its paths through PathGuard immediately before the
platform call and runs the call on a worker thread, so callers suspend at the
I/O boundary. Platform errors are recovered according to the error policy:
under ``"log"`` (the default) they are logged and reported through a failed
FsOutcome, under ``"raise"`` they surface as FsOperationError.
"""

import os
import shutil
from collections.abc import Callable

import anyio
import structlog

from safe_session_storage.core.errors import FsOperationError, classify_os_error
from safe_session_storage.core.settings import ErrorPolicy, resolve_error_policy
from safe_session_storage.fs.models import EntityKind, FsOutcome
from safe_session_storage.fs.paths import PathLike, normalize, to_external
from safe_session_storage.utils.debug import debug

logger = structlog.get_logger(__name__)


def report_failure(
    op: str,
    path: PathLike,
    exc: BaseException,
    *,
    policy: ErrorPolicy,
    target: PathLike | None = None,
) -> FsOutcome:
    """Classify a platform failure and apply the error policy to it.

    Args:
        op: Operation name
        path: Path the operation targeted
        exc: Exception raised by the platform call
        policy: ``"log"`` to swallow, ``"raise"`` to propagate
        target: Optional second path (rename/copy destination)

    Returns:
        Failed FsOutcome (only under the ``"log"`` policy)

    Raises:
        FsOperationError: Under the ``"raise"`` policy
    """
    external = to_external(path)
    external_target = to_external(target) if target is not None else None
    kind = classify_os_error(exc)

    if policy == "raise":
        raise FsOperationError(op, external, kind, str(exc)) from exc

    logger.warning(
        "fs_operation_failed",
        op=op,
        path=external,
        target=external_target,
        kind=kind.value,
        error=str(exc),
    )
    return FsOutcome(
        op=op,
        path=external,
        status="failed",
        target=external_target,
        kind=kind,
        reason=str(exc),
    )


async def _run(
    op: str,
    path: PathLike,
    call: Callable[[], object],
    *,
    target: PathLike | None = None,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    policy = resolve_error_policy(on_error)
    try:
        await anyio.to_thread.run_sync(call)
    except OSError as exc:
        return report_failure(op, path, exc, policy=policy, target=target)

    external = to_external(path)
    external_target = to_external(target) if target is not None else None
    debug(f"{op} succeeded", path=external, target=external_target)
    return FsOutcome(op=op, path=external, status="ok", target=external_target)


def exists_sync(path: PathLike, kind: EntityKind | None = None) -> bool:
    """Check whether an entity is present; False on any error.

    Args:
        path: Path to check
        kind: Restrict the check to files or directories; None for any entity
    """
    try:
        effective = normalize(path)
        if kind is EntityKind.FILE:
            return os.path.isfile(effective)
        if kind is EntityKind.DIRECTORY:
            return os.path.isdir(effective)
        return os.path.exists(effective)
    except (OSError, ValueError):
        return False


async def exists(path: PathLike, kind: EntityKind | None = None) -> bool:
    """Asynchronous variant of exists_sync with the same semantics."""
    return await anyio.to_thread.run_sync(exists_sync, path, kind)


async def delete(
    path: PathLike,
    kind: EntityKind | None = None,
    *,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Delete a file, symlink or empty directory.

    Non-recursive: a directory with contents is reported as a failure.
    A missing entity is a no-op.
    """
    if not await exists(path, kind):
        return FsOutcome(op="delete", path=to_external(path), status="noop")

    effective = normalize(path)

    def _remove() -> None:
        if kind is EntityKind.DIRECTORY or (
            kind is None
            and os.path.isdir(effective)
            and not os.path.islink(effective)
        ):
            os.rmdir(effective)
        else:
            os.unlink(effective)

    return await _run("delete", path, _remove, on_error=on_error)


async def rename(
    path: PathLike,
    new_path: PathLike,
    *,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Move an entity, replacing an existing destination.

    No cross-device fallback is attempted; a failed move is reported with
    ``ErrorKind.CROSS_DEVICE`` so the caller can copy instead.
    """
    src = normalize(path)
    dst = normalize(new_path)
    return await _run(
        "rename",
        path,
        lambda: os.replace(src, dst),
        target=new_path,
        on_error=on_error,
    )


async def copy(
    path: PathLike,
    new_path: PathLike,
    *,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Duplicate file content at new_path, keeping the source."""
    src = normalize(path)
    dst = normalize(new_path)
    return await _run(
        "copy",
        path,
        lambda: shutil.copyfile(src, dst),
        target=new_path,
        on_error=on_error,
    )


async def create_file(
    path: PathLike,
    *,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Create an empty file and any missing parents; existing files are kept."""
    effective = normalize(path)

    def _create() -> None:
        parent = os.path.dirname(effective)
        if parent:
            os.makedirs(parent, exist_ok=True)
        # Append mode never truncates an existing file
        with open(effective, "a", encoding="utf-8"):
            pass

    return await _run("create_file", path, _create, on_error=on_error)


async def create_directory(
    path: PathLike,
    *,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Create a directory recursively; idempotent if it already exists."""
    effective = normalize(path)
    return await _run(
        "create_directory",
        path,
        lambda: os.makedirs(effective, exist_ok=True),
        on_error=on_error,
    )
