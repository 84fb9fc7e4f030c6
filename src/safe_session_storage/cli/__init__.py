"""CLI entrypoints for safe-session-storage."""

from safe_session_storage.cli.storage import app as storage_app

__all__ = ["storage_app"]
