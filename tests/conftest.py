"""Pytest configuration and fixtures for safe-session-storage tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from safe_session_storage.fs.coordinator import WriteCoordinator
from safe_session_storage.fs.writer import AtomicWriter


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test with the default error policy and tracing disabled."""
    monkeypatch.delenv("SAFE_STORAGE_ERROR_POLICY", raising=False)
    monkeypatch.delenv("SAFE_STORAGE_DEBUG", raising=False)


@pytest.fixture
def coordinator() -> WriteCoordinator:
    """A private registry so tests never share queues."""
    return WriteCoordinator()


@pytest.fixture
def writer(coordinator: WriteCoordinator) -> AtomicWriter:
    return AtomicWriter(coordinator)


@pytest.fixture
def make_file() -> Callable[[Path, int], Path]:
    """Create a (sparse) file of the given size, parents included."""

    def _make(path: Path, size: int = 0) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.truncate(size)
        return path

    return _make
