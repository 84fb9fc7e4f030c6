"""Reveal a path in the host desktop file manager."""

import os
import subprocess
import sys

from safe_session_storage.core.settings import ErrorPolicy, resolve_error_policy
from safe_session_storage.fs.entity import report_failure
from safe_session_storage.fs.models import FsOutcome
from safe_session_storage.fs.paths import PathLike, parent_of, to_external
from safe_session_storage.utils.debug import debug


def file_manager_command(path: PathLike, *, platform: str | None = None) -> list[str]:
    """Build the command opening the file manager at path's folder.

    Args:
        path: Entity to reveal
        platform: Override for ``sys.platform``

    Returns:
        argv list; Windows selects the entity itself, other platforms open
        its containing folder.
    """
    platform = platform or sys.platform
    external = to_external(path)

    if platform.startswith("win"):
        return ["explorer.exe", "/select,", external]
    if platform.startswith("linux"):
        return ["xdg-open", parent_of(external)]
    return ["open", parent_of(external)]


def reveal_in_file_manager(
    path: PathLike,
    *,
    platform: str | None = None,
    on_error: ErrorPolicy | None = None,
) -> FsOutcome:
    """Launch the file manager detached and return without waiting for it."""
    command = file_manager_command(path, platform=platform)
    try:
        subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=os.name != "nt",
            close_fds=True,
        )
    except OSError as exc:
        return report_failure(
            "reveal", path, exc, policy=resolve_error_policy(on_error)
        )

    debug("Launched file manager", command=command)
    return FsOutcome(op="reveal", path=to_external(path), status="ok")
