"""Unit tests for version comparison helpers."""

import pytest
from gamectl.core.versioning import compare_versions, is_version_newer


class TestCompareVersions:
    """Tests for compare_versions."""

    @pytest.mark.parametrize(
        ("current", "candidate", "expected"),
        [
            ("2.2.3", "2.3.0", 1),
            ("2.3.0", "2.2.3", -1),
            ("2.2.3", "2.2.3", 0),
            ("1.0", "1.0.0", 0),
            ("1.9", "1.10", 1),
            ("2.0.0rc1", "2.0.0", 1),
        ],
    )
    def test_pep440_versions(self, current: str, candidate: str, expected: int) -> None:
        """Standard versions compare numerically."""
        assert compare_versions(current, candidate) == expected

    @pytest.mark.parametrize(
        ("current", "candidate", "expected"),
        [
            ("v1.2-hotfix", "v1.3-hotfix", 1),
            ("build_10", "build_9", -1),
            ("1.2.3-beta", "1.2.3-beta", 0),
        ],
    )
    def test_fallback_for_free_form_versions(
        self, current: str, candidate: str, expected: int
    ) -> None:
        """Non-PEP 440 strings are compared token by token."""
        assert compare_versions(current, candidate) == expected

    def test_whitespace_is_ignored(self) -> None:
        """Surrounding whitespace does not matter."""
        assert compare_versions(" 1.0 ", "1.0") == 0


class TestIsVersionNewer:
    """Tests for is_version_newer."""

    def test_newer(self) -> None:
        assert is_version_newer("2.2.3", "2.3.0")

    def test_same_or_older(self) -> None:
        assert not is_version_newer("2.3.0", "2.3.0")
        assert not is_version_newer("2.3.0", "2.2.3")
