"""Unit tests for installed package records."""

from datetime import UTC, datetime, timedelta

import pytest
from gamectl.models.installed import (
    BackupSnapshot,
    InstalledRecord,
    create_installed_record,
)


def snapshot(version: str, minutes: int) -> BackupSnapshot:
    created = datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=minutes)
    return BackupSnapshot(version=version, created_at=created.isoformat(), path=f"/b/{version}")


@pytest.fixture
def record() -> InstalledRecord:
    return InstalledRecord(
        package_id="stellar_quest",
        installed_version="2.2.3",
        install_dir="/games/stellar_quest",
        executable_path="/games/stellar_quest/StellarQuest.exe",
    )


class TestBackupSnapshot:
    """Tests for BackupSnapshot."""

    def test_roundtrip(self) -> None:
        """Serialization preserves all fields."""
        original = snapshot("1.0.0", 0)
        assert BackupSnapshot.from_dict(original.to_dict()) == original

    def test_created_parses_z_suffix(self) -> None:
        """Timestamps ending in Z are parsed as UTC."""
        backup = BackupSnapshot(version="1.0", created_at="2026-01-01T00:00:00Z", path="/b")
        assert backup.created.tzinfo is not None

    def test_empty_version_rejected(self) -> None:
        """A snapshot needs a version."""
        with pytest.raises(ValueError, match="version"):
            BackupSnapshot(version="", created_at="2026-01-01T00:00:00+00:00", path="/b")


class TestInstalledRecord:
    """Tests for InstalledRecord."""

    def test_with_backup_appends(self, record: InstalledRecord) -> None:
        """Snapshots below capacity are all kept."""
        updated, evicted = record.with_backup(snapshot("2.2.3", 0))

        assert len(updated.backups) == 1
        assert evicted == []
        assert record.backups == ()

    def test_with_backup_evicts_oldest(self, record: InstalledRecord) -> None:
        """Past capacity the oldest snapshots are evicted."""
        current = record
        evicted_all: list[BackupSnapshot] = []
        for minutes, version in enumerate(["1.0", "1.1", "1.2", "1.3"]):
            current, evicted = current.with_backup(snapshot(version, minutes), capacity=3)
            evicted_all.extend(evicted)

        assert [b.version for b in current.backups] == ["1.1", "1.2", "1.3"]
        assert [b.version for b in evicted_all] == ["1.0"]

    def test_latest_backup(self, record: InstalledRecord) -> None:
        """latest_backup returns the most recent snapshot."""
        current, _ = record.with_backup(snapshot("1.0", 0))
        current, _ = current.with_backup(snapshot("1.1", 5))

        assert current.latest_backup is not None
        assert current.latest_backup.version == "1.1"
        assert record.latest_backup is None

    def test_updated_changes_version(self, record: InstalledRecord) -> None:
        """updated points the record at the new install and keeps backups."""
        with_backup, _ = record.with_backup(snapshot("2.2.3", 0))

        updated = with_backup.updated("2.3.0", "/games/sq", "/games/sq/sq.exe")

        assert updated.installed_version == "2.3.0"
        assert updated.backups == with_backup.backups
        assert updated.installed_at != ""

    def test_roundtrip(self, record: InstalledRecord) -> None:
        """Serialization preserves the record including backups."""
        with_backup, _ = record.with_backup(snapshot("2.2.3", 0))
        assert InstalledRecord.from_dict(with_backup.to_dict()) == with_backup

    def test_empty_version_rejected(self) -> None:
        """Records need an installed version."""
        with pytest.raises(ValueError, match="Installed version"):
            InstalledRecord(package_id="a", installed_version="", install_dir="/a", executable_path="")

    def test_factory_stamps_time(self) -> None:
        """create_installed_record sets installed_at."""
        created = create_installed_record("a", "1.0", "/a", "/a/a.exe")
        assert created.installed_at
        assert created.backups == ()
