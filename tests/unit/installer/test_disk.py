"""Unit tests for the free-space guard."""

from collections import namedtuple
from pathlib import Path

import pytest
from gamectl.core.errors import DiskSpaceError
from gamectl.installer.disk import DiskSpaceGuard

Usage = namedtuple("Usage", ["total", "used", "free"])


def guard_with_free(free: int, headroom: float = 2.0) -> DiskSpaceGuard:
    return DiskSpaceGuard(headroom=headroom, usage=lambda path: Usage(free * 2, free, free))


class TestDiskSpaceGuard:
    """Tests for DiskSpaceGuard."""

    def test_required_bytes(self) -> None:
        assert guard_with_free(0, headroom=2.5).required_bytes(1000) == 2500

    def test_enough_space(self, tmp_path: Path) -> None:
        guard_with_free(10_000).ensure(tmp_path, 4_000)

    def test_not_enough_space(self, tmp_path: Path) -> None:
        """Archive size times headroom must fit."""
        with pytest.raises(DiskSpaceError) as exc_info:
            guard_with_free(10_000).ensure(tmp_path, 6_000)

        assert exc_info.value.required_bytes == 12_000
        assert exc_info.value.available_bytes == 10_000

    def test_unknown_size_not_checked(self, tmp_path: Path) -> None:
        guard_with_free(0).ensure(tmp_path, None)

    def test_missing_path_uses_existing_ancestor(self, tmp_path: Path) -> None:
        """The filesystem is queried at the nearest existing parent."""
        seen: list[Path] = []

        def usage(path: Path) -> Usage:
            seen.append(path)
            return Usage(100, 0, 100)

        DiskSpaceGuard(usage=usage).ensure(tmp_path / "games" / "stellar_quest", 10)

        assert seen == [tmp_path]

    def test_reservations_are_subtracted(self, tmp_path: Path) -> None:
        """A running install's reservation counts against the next one."""
        guard = guard_with_free(10_000)

        with guard.reserve(tmp_path, 3_000):
            assert guard.reserved == 6_000
            with pytest.raises(DiskSpaceError), guard.reserve(tmp_path, 3_000):
                pass

        assert guard.reserved == 0

    def test_reservation_released_on_error(self, tmp_path: Path) -> None:
        guard = guard_with_free(10_000)

        with pytest.raises(RuntimeError), guard.reserve(tmp_path, 1_000):
            raise RuntimeError("install failed")

        assert guard.reserved == 0
