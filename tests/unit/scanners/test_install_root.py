"""Unit tests for the install root scanner."""

from pathlib import Path

import pytest
from gamectl.installer.marker import write_marker
from gamectl.scanners import InstallRootScanner


def make_dir(root: Path, name: str, *files: str) -> Path:
    directory = root / name
    directory.mkdir(parents=True)
    for filename in files:
        (directory / filename).write_bytes(b"MZ")
    return directory


class TestInstallRootScanner:
    """Tests for InstallRootScanner."""

    def test_missing_root(self, tmp_path: Path) -> None:
        scanner = InstallRootScanner(tmp_path / "games")

        assert not scanner.is_available()
        assert list(scanner.scan()) == []

    def test_lists_directories_sorted(self, tmp_path: Path) -> None:
        """Visible directories are yielded in name order; files are ignored."""
        make_dir(tmp_path, "moon_miner")
        make_dir(tmp_path, "stellar_quest")
        (tmp_path / "notes.txt").write_text("x")

        ids = [install.package_id for install in InstallRootScanner(tmp_path).scan()]

        assert ids == ["moon_miner", "stellar_quest"]

    def test_skips_hidden_directories(self, tmp_path: Path) -> None:
        make_dir(tmp_path, ".stellar_quest-x.partial")
        make_dir(tmp_path, ".stellar_quest.previous")

        assert list(InstallRootScanner(tmp_path).scan()) == []

    def test_marker_supplies_id_and_version(self, tmp_path: Path) -> None:
        directory = make_dir(tmp_path, "Stellar Quest", "StellarQuest.exe")
        write_marker(directory, "stellar_quest", "2.2.3", directory / "StellarQuest.exe")

        [install] = InstallRootScanner(tmp_path).scan()

        assert install.package_id == "stellar_quest"
        assert install.version == "2.2.3"
        assert install.has_marker

    def test_unmarked_directory(self, tmp_path: Path) -> None:
        make_dir(tmp_path, "stellar_quest")

        [install] = InstallRootScanner(tmp_path).scan()

        assert install.package_id == "stellar_quest"
        assert install.version is None
        assert not install.has_marker

    def test_unreadable_directory_is_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A directory that cannot be inspected does not abort the scan."""
        make_dir(tmp_path, "locked")
        make_dir(tmp_path, "stellar_quest")
        is_dir = Path.is_dir

        def denied(path: Path) -> bool:
            if path.name == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return is_dir(path)

        monkeypatch.setattr(Path, "is_dir", denied)

        ids = [install.package_id for install in InstallRootScanner(tmp_path).scan()]

        assert ids == ["stellar_quest"]

    def test_unreadable_marker_falls_back_to_name(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        make_dir(tmp_path, "stellar_quest")
        is_file = Path.is_file

        def denied(path: Path) -> bool:
            if path.name == ".gamectl.json":
                raise PermissionError(13, "Permission denied", str(path))
            return is_file(path)

        monkeypatch.setattr(Path, "is_file", denied)

        installs = list(InstallRootScanner(tmp_path).scan())

        assert [i.package_id for i in installs] == ["stellar_quest"]
        assert not installs[0].has_marker


class TestScannedInstallExecutable:
    """Tests for ScannedInstall.find_executable."""

    def test_marker_executable_wins(self, tmp_path: Path) -> None:
        directory = make_dir(tmp_path, "sq", "Stellar.exe", "Alt.exe")
        write_marker(directory, "sq", "1.0", directory / "Alt.exe")

        [install] = InstallRootScanner(tmp_path).scan()

        assert install.find_executable("Stellar.exe") == (directory / "Alt.exe").resolve()

    def test_hint_then_heuristic(self, tmp_path: Path) -> None:
        directory = make_dir(tmp_path, "sq", "Stellar.exe", "unins000.exe")

        [install] = InstallRootScanner(tmp_path).scan()

        assert install.find_executable("Missing.exe") == directory / "Stellar.exe"
        assert install.find_executable(None) == directory / "Stellar.exe"
