"""Safe filesystem access: atomic writes, resilient listing, long paths.

This package provides crash-safe single-file writes serialized per path,
recursive file listing that tolerates per-entry errors, and transparent
handling of Windows path-length limits.
"""

from safe_session_storage.fs.coordinator import (
    WriteCoordinator,
    WriteToken,
    default_coordinator,
)
from safe_session_storage.fs.entity import (
    copy,
    create_directory,
    create_file,
    delete,
    exists,
    exists_sync,
    rename,
)
from safe_session_storage.fs.explorer import reveal_in_file_manager
from safe_session_storage.fs.models import EntityKind, Entry, FsOutcome
from safe_session_storage.fs.paths import normalize, to_external
from safe_session_storage.fs.walker import list_files
from safe_session_storage.fs.writer import (
    AtomicWriter,
    default_writer,
    history,
    read_text,
    write_text,
)

__all__ = [
    "AtomicWriter",
    "EntityKind",
    "Entry",
    "FsOutcome",
    "WriteCoordinator",
    "WriteToken",
    "copy",
    "create_directory",
    "create_file",
    "default_coordinator",
    "default_writer",
    "delete",
    "exists",
    "exists_sync",
    "history",
    "list_files",
    "normalize",
    "read_text",
    "rename",
    "reveal_in_file_manager",
    "to_external",
    "write_text",
]
