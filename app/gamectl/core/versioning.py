"""Helpers for comparing catalog and installed version strings."""

from __future__ import annotations

from packaging.version import InvalidVersion, Version

__all__ = [
    "compare_versions",
    "is_version_newer",
]


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Versions are parsed with :mod:`packaging`. Strings that are not valid
    PEP 440 versions (e.g. "2.2.3-hotfix") fall back to a token-wise
    comparison where numeric parts compare numerically.

    Returns:
        ``1`` when ``candidate`` is newer, ``-1`` when it is older and
        ``0`` when the versions are equivalent.
    """
    current_version = current_version.strip()
    candidate = candidate.strip()
    if candidate == current_version:
        return 0

    try:
        candidate_version = Version(candidate)
        current_version_parsed = Version(current_version)
    except InvalidVersion:
        return _fallback_compare(current_version, candidate)

    if candidate_version == current_version_parsed:
        return 0
    if candidate_version > current_version_parsed:
        return 1
    return -1


def is_version_newer(current_version: str, candidate: str) -> bool:
    """Return ``True`` if ``candidate`` is newer than ``current_version``."""
    return compare_versions(current_version, candidate) > 0


def _fallback_compare(current_version: str, candidate: str) -> int:
    def tokenize(version: str) -> list[tuple[int, object]]:
        tokens: list[tuple[int, object]] = []
        raw_version = version.lower().removeprefix("v")
        for raw in raw_version.replace("-", ".").replace("+", ".").replace("_", ".").split("."):
            if not raw:
                continue
            if raw.isdigit():
                tokens.append((0, int(raw)))
            else:
                tokens.append((1, raw))
        return tokens

    current_tokens = tokenize(current_version)
    candidate_tokens = tokenize(candidate)
    length = max(len(current_tokens), len(candidate_tokens))
    for index in range(length):
        current_token = current_tokens[index] if index < len(current_tokens) else (0, 0)
        candidate_token = candidate_tokens[index] if index < len(candidate_tokens) else (0, 0)
        if candidate_token != current_token:
            return 1 if candidate_token > current_token else -1
    return 0
