"""Crash-safe file writes.

A write never touches the destination until the new content is fully on
stable storage:

1. Take the path's WriteToken (writes to one path run one at a time, in
   arrival order).
2. Write the content to a uniquely named artifact in the ``Temp`` folder next
   to the destination, then flush and fsync it.
3. Publish the artifact with a single replacing operation:
   - keep_history=True: delete the destination, copy the artifact over it and
     leave the artifact behind as a history trail;
   - keep_history=False: rename the artifact onto the destination, falling
     back to delete + copy when the rename crosses devices.
4. Release the token, whatever happened.
"""

import os
import time
import uuid
from pathlib import Path

import anyio
import structlog

from safe_session_storage.core.constants import TEMP_DIRNAME
from safe_session_storage.core.errors import ErrorKind, FsOperationError
from safe_session_storage.core.settings import ErrorPolicy, resolve_error_policy
from safe_session_storage.fs import entity
from safe_session_storage.fs.coordinator import WriteCoordinator, default_coordinator
from safe_session_storage.fs.models import EntityKind, Entry, FsOutcome
from safe_session_storage.fs.paths import PathLike, normalize, parent_of, to_external
from safe_session_storage.fs.walker import list_files
from safe_session_storage.utils.debug import debug

logger = structlog.get_logger(__name__)


def _write_durably(artifact: str, content: str, encoding: str) -> None:
    os.makedirs(os.path.dirname(artifact), exist_ok=True)
    with open(artifact, "w", encoding=encoding, newline="") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())


def _read_text(path: str, encoding: str) -> str:
    with open(path, encoding=encoding, newline="") as f:
        return f.read()


_last_stamp = 0


def _next_stamp() -> int:
    """Wall-clock nanoseconds, strictly increasing within the process."""
    global _last_stamp
    _last_stamp = max(time.time_ns(), _last_stamp + 1)
    return _last_stamp


def _artifact_name(path: PathLike) -> str:
    return f"{os.path.basename(os.fspath(path))}.{_next_stamp():020d}-{uuid.uuid4()}"


def _artifact_stamp(name: str, prefix: str) -> int | None:
    """Return the creation stamp of an artifact of prefix, None for other files."""
    if not name.startswith(prefix):
        return None
    stamp, _, suffix = name[len(prefix) :].partition("-")
    if not stamp.isdigit():
        return None
    try:
        uuid.UUID(suffix)
    except ValueError:
        return None
    return int(stamp)


def temp_dir_for(path: PathLike) -> str:
    """Return the effective path of the Temp folder serving path."""
    return os.path.join(normalize(parent_of(path)), TEMP_DIRNAME)


class AtomicWriter:
    """Writes and reads files through a shared WriteCoordinator.

    Args:
        coordinator: Registry used to serialize access per path. Defaults to
            the process-wide ``default_coordinator``.
        on_error: Error policy; None resolves from the environment.
    """

    def __init__(
        self,
        coordinator: WriteCoordinator | None = None,
        *,
        on_error: ErrorPolicy | None = None,
    ) -> None:
        self._coordinator = coordinator or default_coordinator
        self._on_error = on_error

    @property
    def coordinator(self) -> WriteCoordinator:
        return self._coordinator

    async def write(
        self,
        path: PathLike,
        content: str,
        *,
        keep_history: bool = True,
        encoding: str = "utf-8",
    ) -> FsOutcome:
        """Atomically replace the content of path.

        Args:
            path: Destination file
            content: Full new content
            keep_history: Keep the temp artifact on disk after publishing
            encoding: Text encoding of the content

        Returns:
            FsOutcome for the write; ``artifact`` names the temp artifact.
            Under the default policy failures are logged, never raised.

        Raises:
            FsOperationError: Only under the ``"raise"`` policy
        """
        policy = resolve_error_policy(self._on_error)
        external = to_external(path)

        async with self._coordinator.hold(path):
            target = normalize(path)
            artifact = normalize(
                os.path.join(temp_dir_for(path), _artifact_name(path))
            )

            try:
                await anyio.to_thread.run_sync(
                    _write_durably, artifact, content, encoding
                )
                if keep_history:
                    await self._replace_by_copy(artifact, target)
                else:
                    await self._replace_by_rename(artifact, target)
            except FsOperationError as exc:
                if policy == "raise":
                    raise
                logger.warning(
                    "write_failed",
                    path=external,
                    artifact=to_external(artifact),
                    kind=exc.kind.value,
                    error=exc.reason,
                )
                return FsOutcome(
                    op="write",
                    path=external,
                    status="failed",
                    kind=exc.kind,
                    reason=exc.reason,
                    artifact=to_external(artifact),
                )
            except OSError as exc:
                failed = entity.report_failure("write", path, exc, policy=policy)
                failed.artifact = to_external(artifact)
                return failed
            except UnicodeEncodeError as exc:
                if policy == "raise":
                    raise
                logger.warning("write_failed", path=external, error=str(exc))
                return FsOutcome(
                    op="write", path=external, status="failed", reason=str(exc)
                )

        debug("Published write", path=external, keep_history=keep_history)
        return FsOutcome(
            op="write",
            path=external,
            status="ok",
            artifact=to_external(artifact) if keep_history else None,
        )

    async def _replace_by_copy(self, artifact: str, target: str) -> None:
        await entity.delete(target, EntityKind.FILE, on_error="raise")
        await entity.copy(artifact, target, on_error="raise")

    async def _replace_by_rename(self, artifact: str, target: str) -> None:
        try:
            await entity.rename(artifact, target, on_error="raise")
        except FsOperationError as exc:
            if exc.kind is not ErrorKind.CROSS_DEVICE:
                raise
            debug("Rename crossed devices, copying instead", path=to_external(target))
            await self._replace_by_copy(artifact, target)
            await entity.delete(artifact, EntityKind.FILE, on_error="raise")

    async def read(self, path: PathLike, *, encoding: str = "utf-8") -> str | None:
        """Read path once any in-flight write to it has resolved.

        Returns:
            File content, or None if the file does not exist or cannot be read.
        """
        await self._coordinator.await_pending(path)
        if not await entity.exists(path, EntityKind.FILE):
            return None

        policy = resolve_error_policy(self._on_error)
        try:
            return await anyio.to_thread.run_sync(
                _read_text, normalize(path), encoding
            )
        except OSError as exc:
            entity.report_failure("read", path, exc, policy=policy)
        except UnicodeDecodeError as exc:
            if policy == "raise":
                raise
            logger.warning("read_failed", path=to_external(path), error=str(exc))
        return None

    async def history(self, path: PathLike) -> list[Entry]:
        """List the artifacts retained for path, oldest first."""
        prefix = f"{os.path.basename(os.fspath(path))}."
        temp_dir = temp_dir_for(path)
        if not await entity.exists(temp_dir, EntityKind.DIRECTORY):
            return []

        # Only direct children of Temp belong to path
        folder = Path(to_external(temp_dir))
        entries = await list_files(
            temp_dir,
            checker=lambda e: (
                e.path.parent == folder
                and _artifact_stamp(e.name, prefix) is not None
            ),
        )
        return sorted(entries, key=lambda e: _artifact_stamp(e.name, prefix) or 0)


#: Process-wide writer bound to ``default_coordinator``.
default_writer = AtomicWriter(default_coordinator)


async def write_text(
    path: PathLike, content: str, *, keep_history: bool = True
) -> FsOutcome:
    """Write through the process-wide writer."""
    return await default_writer.write(path, content, keep_history=keep_history)


async def read_text(path: PathLike) -> str | None:
    """Read through the process-wide writer."""
    return await default_writer.read(path)


async def history(path: PathLike) -> list[Entry]:
    """List retained artifacts through the process-wide writer."""
    return await default_writer.history(path)
