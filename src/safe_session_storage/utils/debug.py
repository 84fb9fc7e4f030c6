"""Debug tracing for safe-session-storage.

Successful file-system operations emit a trace through debug(); the output
is silent unless the SAFE_STORAGE_DEBUG environment variable is enabled.
Failures are not traced here: they are always logged as warnings by the
operation that swallowed them.

Usage:
    from safe_session_storage.utils.debug import debug

    debug("Published artifact", path=target)

Environment:
    SAFE_STORAGE_DEBUG: Set to '1', 'true', 'yes' (case-insensitive) to enable
                        trace output. Any other value or unset disables it.
"""

import os
from typing import Any

import structlog

_logger = structlog.get_logger("safe_session_storage.trace")


def debug_enabled() -> bool:
    """Return True if SAFE_STORAGE_DEBUG is set to a truthy value."""
    return os.environ.get("SAFE_STORAGE_DEBUG", "").lower() in ("1", "true", "yes")


def debug(msg: Any, **fields: Any) -> None:
    """Emit a trace event if SAFE_STORAGE_DEBUG is enabled.

    Args:
        msg: Event message. Will be converted to string.
        **fields: Extra key/value pairs bound to the event.

    Note:
        The environment variable is read on every call, so toggling it at
        runtime takes effect immediately.
    """
    if debug_enabled():
        _logger.debug(str(msg), **fields)
