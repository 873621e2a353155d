"""Unit tests for InstallRegistry."""

import json
from pathlib import Path

import pytest
from gamectl.core.errors import NotInstalledError
from gamectl.core.registry import REGISTRY_VERSION, InstallRegistry, RegistryError
from gamectl.models.installed import InstalledRecord, create_installed_record


@pytest.fixture
def registry(tmp_path: Path) -> InstallRegistry:
    return InstallRegistry(tmp_path / "installed.json")


def make_record(package_id: str = "stellar_quest", version: str = "2.2.3") -> InstalledRecord:
    return create_installed_record(
        package_id, version, f"/games/{package_id}", f"/games/{package_id}/game.exe"
    )


class TestInstallRegistry:
    """Tests for InstallRegistry."""

    def test_missing_file_is_empty(self, registry: InstallRegistry) -> None:
        """A fresh registry has no records."""
        assert registry.all() == []
        assert registry.get("stellar_quest") is None

    def test_put_persists(self, registry: InstallRegistry) -> None:
        """put writes through to disk."""
        record = make_record()
        registry.put(record)

        data = json.loads(registry.path.read_text())
        assert data["version"] == REGISTRY_VERSION
        assert data["games"]["stellar_quest"]["installed_version"] == "2.2.3"

    def test_reload_reads_from_disk(self, registry: InstallRegistry, tmp_path: Path) -> None:
        """A second registry instance sees the same records."""
        record = make_record()
        registry.put(record)

        other = InstallRegistry(tmp_path / "installed.json")

        assert other.get("stellar_quest") == record

    def test_put_replaces_record(self, registry: InstallRegistry) -> None:
        """A second put for the same id replaces the record."""
        registry.put(make_record(version="2.2.3"))
        registry.put(make_record(version="2.3.0"))

        assert registry.require("stellar_quest").installed_version == "2.3.0"
        assert len(registry.all()) == 1

    def test_all_is_sorted(self, registry: InstallRegistry) -> None:
        """Records are returned sorted by id."""
        registry.put(make_record("zeta"))
        registry.put(make_record("alpha"))

        assert [r.package_id for r in registry.all()] == ["alpha", "zeta"]

    def test_remove(self, registry: InstallRegistry) -> None:
        """remove deletes and returns the record."""
        record = make_record()
        registry.put(record)

        assert registry.remove("stellar_quest") == record
        assert registry.get("stellar_quest") is None
        assert registry.remove("stellar_quest") is None

    def test_require_missing(self, registry: InstallRegistry) -> None:
        """require raises NotInstalledError."""
        with pytest.raises(NotInstalledError):
            registry.require("stellar_quest")

    def test_invalid_json(self, registry: InstallRegistry) -> None:
        """A corrupt registry file raises RegistryError."""
        registry.path.write_text("{not json")

        with pytest.raises(RegistryError, match="Invalid registry file"):
            registry.all()

    def test_skips_corrupt_records(self, registry: InstallRegistry) -> None:
        """Individual bad records are skipped."""
        registry.path.write_text(
            json.dumps(
                {
                    "version": 1,
                    "games": {
                        "good": make_record("good").to_dict(),
                        "bad": {"installed_version": "1.0"},
                    },
                }
            )
        )

        assert [r.package_id for r in registry.all()] == ["good"]

    def test_no_temp_files_left_behind(self, registry: InstallRegistry) -> None:
        """Atomic writes clean up their temporary file."""
        registry.put(make_record())

        assert [p.name for p in registry.path.parent.iterdir()] == ["installed.json"]
