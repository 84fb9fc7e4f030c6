"""Tests for the resilient recursive file listing."""

import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from safe_session_storage.core.constants import MIN_LISTED_FILE_SIZE
from safe_session_storage.fs import walker
from safe_session_storage.fs.models import Entry
from safe_session_storage.fs.walker import list_files

MB = 1024 * 1024

MakeFile = Callable[[Path, int], Path]


@pytest.fixture
def media_tree(tmp_path: Path, make_file: MakeFile) -> Path:
    """Create a small tree for listing.

    Structure:
        root/
            a.txt        (2 MB)
            b.txt        (10 KB)
            c.log        (5 MB)
            nested/
                deeper/
                    d.TXT    (3 MB)
            empty/
    """
    root = tmp_path / "root"
    make_file(root / "a.txt", 2 * MB)
    make_file(root / "b.txt", 10 * 1024)
    make_file(root / "c.log", 5 * MB)
    make_file(root / "nested" / "deeper" / "d.TXT", 3 * MB)
    (root / "empty").mkdir()
    return root


def _names(entries: list[Entry]) -> set[str]:
    return {entry.path.name for entry in entries}


class TestFilters:
    """Test filter precedence and the size threshold."""

    @pytest.mark.asyncio
    async def test_no_filter_lists_every_file(self, media_tree: Path) -> None:
        entries = await list_files(media_tree)

        assert _names(entries) == {"a.txt", "b.txt", "c.log", "d.TXT"}
        assert all(isinstance(entry, Entry) for entry in entries)

    @pytest.mark.asyncio
    async def test_directories_are_never_returned(self, media_tree: Path) -> None:
        entries = await list_files(media_tree)

        assert all(Path(entry.path).is_file() for entry in entries)

    @pytest.mark.asyncio
    async def test_extension_filter_applies_size_threshold(
        self, media_tree: Path
    ) -> None:
        """Test that small files are skipped and other extensions excluded."""
        entries = await list_files(media_tree, extensions=["TXT"])

        assert _names(entries) == {"a.txt", "d.TXT"}

    @pytest.mark.asyncio
    async def test_extension_matching_ignores_case_and_dot(
        self, media_tree: Path
    ) -> None:
        entries = await list_files(media_tree, extensions=[".log"])

        assert _names(entries) == {"c.log"}

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(
        self, tmp_path: Path, make_file: MakeFile
    ) -> None:
        make_file(tmp_path / "exact.mkv", MIN_LISTED_FILE_SIZE)
        make_file(tmp_path / "under.mkv", MIN_LISTED_FILE_SIZE - 1)

        entries = await list_files(tmp_path, extensions=["MKV"])

        assert _names(entries) == {"exact.mkv"}

    @pytest.mark.asyncio
    async def test_empty_extension_list_matches_nothing(
        self, media_tree: Path
    ) -> None:
        assert await list_files(media_tree, extensions=[]) == []

    @pytest.mark.asyncio
    async def test_checker_takes_precedence(self, media_tree: Path) -> None:
        """Test that extensions are ignored when a checker is supplied."""
        entries = await list_files(
            media_tree,
            extensions=["LOG"],
            checker=lambda entry: entry.size < MB,
        )

        assert _names(entries) == {"b.txt"}

    @pytest.mark.asyncio
    async def test_failing_checker_skips_only_that_entry(
        self, media_tree: Path
    ) -> None:
        def checker(entry: Entry) -> bool:
            if entry.extension == "LOG":
                raise RuntimeError("boom")
            return True

        with capture_logs() as logs:
            entries = await list_files(media_tree, checker=checker)

        assert _names(entries) == {"a.txt", "b.txt", "d.TXT"}
        assert logs[0]["event"] == "walk_checker_failed"


class TestEntries:
    """Test entry metadata."""

    @pytest.mark.asyncio
    async def test_entry_metadata(self, media_tree: Path) -> None:
        entries = {e.path.name: e for e in await list_files(media_tree)}

        assert entries["a.txt"].size == 2 * MB
        assert entries["a.txt"].extension == "TXT"
        assert entries["d.TXT"].path == media_tree / "nested" / "deeper" / "d.TXT"
        assert entries["c.log"].modified.tzinfo is not None

    def test_extension_without_dot_is_empty(self, tmp_path: Path) -> None:
        entry = Entry(
            path=tmp_path / "Makefile", size=0, modified=datetime(2024, 1, 1, tzinfo=UTC)
        )

        assert entry.extension == ""
        assert entry.name == "Makefile"


class TestResilience:
    """Test that per-entry errors never abort the listing."""

    @pytest.mark.asyncio
    async def test_access_error_in_one_subdirectory(
        self,
        tmp_path: Path,
        make_file: MakeFile,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        root = tmp_path / "root"
        make_file(root / "locked" / "secret.txt", 10)
        make_file(root / "open" / "visible.txt", 10)
        make_file(root / "top.txt", 10)

        real_scandir = os.scandir

        def guarded_scandir(path: str):  # type: ignore[no-untyped-def]
            if os.path.basename(path) == "locked":
                raise PermissionError(13, "Access is denied", path)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", guarded_scandir)

        with capture_logs() as logs:
            entries = await list_files(root)

        assert _names(entries) == {"visible.txt", "top.txt"}
        assert logs[0]["event"] == "walk_entry_skipped"
        assert logs[0]["kind"] == "access_denied"

    @pytest.mark.asyncio
    async def test_missing_root_is_empty(self, tmp_path: Path) -> None:
        with capture_logs():
            assert await list_files(tmp_path / "missing") == []

    @pytest.mark.asyncio
    async def test_symlinks_are_not_followed(
        self, tmp_path: Path, make_file: MakeFile
    ) -> None:
        outside = tmp_path / "outside"
        make_file(outside / "elsewhere.txt", 10)
        root = tmp_path / "root"
        make_file(root / "real.txt", 10)
        try:
            (root / "linked-dir").symlink_to(outside, target_is_directory=True)
            (root / "linked-file.txt").symlink_to(outside / "elsewhere.txt")
        except OSError:
            pytest.skip("symlinks not supported on this platform")

        entries = await list_files(root)

        assert _names(entries) == {"real.txt"}

    @pytest.mark.asyncio
    async def test_every_scanned_directory_is_normalized(
        self, media_tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that nested directories are scanned in effective form too."""
        normalized: list[str] = []
        scanned: list[str] = []
        real_normalize = walker.normalize
        real_scan = walker._scan_directory

        def recording_normalize(path: os.PathLike[str] | str) -> str:
            result = real_normalize(path)
            normalized.append(result)
            return result

        def recording_scan(directory: str) -> tuple[list[str], list[Entry]]:
            scanned.append(directory)
            return real_scan(directory)

        monkeypatch.setattr(walker, "normalize", recording_normalize)
        monkeypatch.setattr(walker, "_scan_directory", recording_scan)

        entries = await list_files(media_tree)

        assert "d.TXT" in _names(entries)
        assert len(scanned) == 4
        assert all(directory in normalized for directory in scanned)
