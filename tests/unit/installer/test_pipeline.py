"""Unit tests for the install pipeline."""

import threading
from pathlib import Path

import pytest
from gamectl.core.errors import ExtractionError, OperationCancelledError
from gamectl.installer.marker import MARKER_FILENAME, read_marker
from gamectl.installer.pipeline import InstallPipeline, remove_tree
from helpers import build_zip, game_files


@pytest.fixture
def pipeline(tmp_path: Path) -> InstallPipeline:
    return InstallPipeline(tmp_path / "staging")


def stage(pipeline: InstallPipeline, payload: bytes, **install_kwargs: object) -> object:
    """Write ``payload`` into a staging file and install it."""
    with pipeline.staging_file("stellar_quest") as (archive, stream):
        stream.write(payload)
        stream.flush()
        return pipeline.install(archive, **install_kwargs)  # type: ignore[arg-type]


class TestStagingFile:
    """Tests for InstallPipeline.staging_file."""

    def test_removed_after_block(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        with pipeline.staging_file("stellar_quest") as (archive, stream):
            stream.write(b"data")
            assert archive.parent == tmp_path / "staging"
            assert archive.name.startswith("stellar_quest-")

        assert not archive.exists()

    def test_removed_on_error(self, pipeline: InstallPipeline) -> None:
        with pytest.raises(RuntimeError), pipeline.staging_file("stellar_quest") as (archive, _):
            raise RuntimeError("boom")

        assert not archive.exists()


class TestInstall:
    """Tests for InstallPipeline.install."""

    def test_installs_and_flattens(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        """The wrapping folder is flattened and a marker written."""
        target = tmp_path / "games" / "stellar_quest"

        paths = stage(
            pipeline,
            build_zip(game_files()),
            target_dir=target,
            executable_hint="StellarQuest/StellarQuest.exe",
            package_id="stellar_quest",
            version="2.2.3",
        )

        assert paths.install_dir == target  # type: ignore[attr-defined]
        assert paths.executable_path == target / "StellarQuest.exe"  # type: ignore[attr-defined]
        assert (target / "data" / "level1.dat").is_file()
        assert "version.txt" in paths.files  # type: ignore[attr-defined]
        assert MARKER_FILENAME not in paths.files  # type: ignore[attr-defined]
        marker = read_marker(target)
        assert marker is not None
        assert marker.version == "2.2.3"
        assert marker.executable == "StellarQuest.exe"

    def test_auto_detects_executable(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        """Without a hint the uninstaller is not chosen."""
        target = tmp_path / "games" / "stellar_quest"

        paths = stage(
            pipeline,
            build_zip(game_files()),
            target_dir=target,
            package_id="stellar_quest",
            version="2.2.3",
        )

        assert paths.executable_path.name == "StellarQuest.exe"  # type: ignore[attr-defined]

    def test_replaces_existing_install(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        """Publishing swaps the whole directory; stale files disappear."""
        target = tmp_path / "games" / "stellar_quest"
        target.mkdir(parents=True)
        (target / "stale.txt").write_text("old")

        stage(
            pipeline,
            build_zip(game_files("2.3.0")),
            target_dir=target,
            package_id="stellar_quest",
            version="2.3.0",
        )

        assert (target / "version.txt").read_text() == "2.3.0"
        assert not (target / "stale.txt").exists()
        assert sorted(p.name for p in target.parent.iterdir()) == ["stellar_quest"]

    def test_failure_leaves_target_untouched(
        self, pipeline: InstallPipeline, tmp_path: Path
    ) -> None:
        """A broken archive never touches the live directory."""
        target = tmp_path / "games" / "stellar_quest"
        target.mkdir(parents=True)
        (target / "version.txt").write_text("2.2.3")

        with pytest.raises(ExtractionError):
            stage(
                pipeline,
                build_zip({"readme.txt": b"no executable here"}),
                target_dir=target,
                package_id="stellar_quest",
                version="2.3.0",
            )

        assert (target / "version.txt").read_text() == "2.2.3"
        assert sorted(p.name for p in target.parent.iterdir()) == ["stellar_quest"]

    def test_on_extracting_called(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        calls: list[str] = []

        stage(
            pipeline,
            build_zip(game_files()),
            target_dir=tmp_path / "games" / "stellar_quest",
            package_id="stellar_quest",
            version="2.2.3",
            on_extracting=lambda: calls.append("extracting"),
        )

        assert calls == ["extracting"]

    def test_before_publish_sees_old_install(
        self, pipeline: InstallPipeline, tmp_path: Path
    ) -> None:
        """The hook runs after extraction, while the old directory is still live."""
        target = tmp_path / "games" / "stellar_quest"
        target.mkdir(parents=True)
        (target / "version.txt").write_text("2.2.3")
        seen: list[str] = []

        stage(
            pipeline,
            build_zip(game_files("2.3.0")),
            target_dir=target,
            package_id="stellar_quest",
            version="2.3.0",
            on_extracting=lambda: seen.append("extracting"),
            before_publish=lambda: seen.append((target / "version.txt").read_text()),
        )

        assert seen == ["extracting", "2.2.3"]
        assert (target / "version.txt").read_text() == "2.3.0"

    def test_before_publish_skipped_on_failure(
        self, pipeline: InstallPipeline, tmp_path: Path
    ) -> None:
        calls: list[str] = []

        with pytest.raises(ExtractionError):
            stage(
                pipeline,
                build_zip({"readme.txt": b"no executable here"}),
                target_dir=tmp_path / "games" / "stellar_quest",
                package_id="stellar_quest",
                version="2.3.0",
                before_publish=lambda: calls.append("publish"),
            )

        assert calls == []

    def test_cancelled_before_extraction(self, pipeline: InstallPipeline, tmp_path: Path) -> None:
        """A set token stops the install with nothing published."""
        token = threading.Event()
        token.set()
        target = tmp_path / "games" / "stellar_quest"

        with pytest.raises(OperationCancelledError):
            stage(
                pipeline,
                build_zip(game_files()),
                target_dir=target,
                package_id="stellar_quest",
                version="2.2.3",
                cancel_token=token,
            )

        assert not target.exists()


class TestRemoveTree:
    """Tests for remove_tree."""

    def test_removes_directory(self, tmp_path: Path) -> None:
        (tmp_path / "a" / "b").mkdir(parents=True)
        remove_tree(tmp_path / "a")
        assert not (tmp_path / "a").exists()

    def test_removes_file(self, tmp_path: Path) -> None:
        (tmp_path / "f").write_text("x")
        remove_tree(tmp_path / "f")
        assert not (tmp_path / "f").exists()

    def test_missing_is_ignored(self, tmp_path: Path) -> None:
        remove_tree(tmp_path / "missing")
