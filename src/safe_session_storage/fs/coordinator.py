"""Per-path serialization of writes and reads.

The registry maps each path to the most recently queued WriteToken (the tail
of that path's queue). A new writer registers itself as the tail before it
suspends, then waits for the previous tail; writers therefore run in strict
arrival order and never overlap. Readers wait on the current tail without
registering anything.

A token is removed from the registry when it resolves, unless a later writer
has already replaced it as the tail. Tokens that are no longer the tail are
only referenced by their successor, so the registry never accumulates
resolved tokens.

This is purely in-process: writes from other processes are not serialized.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio

from safe_session_storage.fs.paths import PathLike, normalize, to_external
from safe_session_storage.utils.debug import debug


class WriteToken:
    """Handle held by the single in-flight writer of a path."""

    def __init__(self, key: str, predecessor: "WriteToken | None") -> None:
        self.key = key
        self._predecessor = predecessor
        self._released = anyio.Event()

    @property
    def resolved(self) -> bool:
        return self._released.is_set()

    async def wait(self) -> None:
        """Wait until this token and every token queued before it resolved."""
        # A predecessor is only kept when the holder gave up while queued
        if self._predecessor is not None:
            await self._predecessor.wait()
        await self._released.wait()

    def __repr__(self) -> str:
        return f"WriteToken(path={to_external(self.key)!r}, resolved={self.resolved})"


class WriteCoordinator:
    """Registry of in-flight writes, keyed by normalized path."""

    def __init__(self) -> None:
        self._pending: dict[str, WriteToken] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, path: PathLike) -> bool:
        return normalize(path) in self._pending

    async def begin_write(self, path: PathLike) -> WriteToken:
        """Queue behind any in-flight write to path and return a live token."""
        key = normalize(path)
        previous = self._pending.get(key)
        token = WriteToken(key, previous)
        self._pending[key] = token

        if previous is not None:
            debug("Waiting for pending write", path=to_external(key))
            try:
                await previous.wait()
            except BaseException:
                self._abandon(token)
                raise
            token._predecessor = None

        return token

    def end_write(self, token: WriteToken) -> None:
        """Resolve the token, unblocking the next queued writer or readers."""
        token._predecessor = None
        self._resolve(token)

    def _abandon(self, token: WriteToken) -> None:
        """Drop a writer cancelled while queued without opening the path.

        Successors keep waiting on the live holder through this token's
        predecessor link; if this token was the tail, the registry falls back
        to the nearest predecessor that has not been released yet.
        """
        token._released.set()
        if self._pending.get(token.key) is not token:
            return

        holder = token._predecessor
        while holder is not None and holder._released.is_set():
            holder = holder._predecessor
        if holder is None:
            del self._pending[token.key]
        else:
            self._pending[token.key] = holder

    def _resolve(self, token: WriteToken) -> None:
        token._released.set()
        if self._pending.get(token.key) is token:
            del self._pending[token.key]

    async def await_pending(self, path: PathLike) -> None:
        """Wait for the write currently queued for path, if any."""
        token = self._pending.get(normalize(path))
        if token is not None:
            await token.wait()

    @asynccontextmanager
    async def hold(self, path: PathLike) -> AsyncIterator[WriteToken]:
        """Hold the write token for path for the duration of the block."""
        token = await self.begin_write(path)
        try:
            yield token
        finally:
            self.end_write(token)


#: Process-wide registry shared by every writer that is not given its own.
default_coordinator = WriteCoordinator()
