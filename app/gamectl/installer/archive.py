"""Archive verification, extraction, and entry-point discovery."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import stat
import tarfile
import zipfile
from enum import Enum
from pathlib import Path, PurePosixPath

from gamectl.core.errors import ExtractionError
from gamectl.installer.marker import MARKER_FILENAME

logger = logging.getLogger(__name__)

# Extraction limits
MAX_ARCHIVE_ENTRIES = 200_000
MAX_ARCHIVE_TOTAL_BYTES = 256 * 1024**3  # 256 GiB
MAX_COMPRESSION_RATIO = 200  # Uncompressed vs compressed bytes per member

# Files considered runnable regardless of permission bits
EXECUTABLE_SUFFIXES = (".exe", ".x86_64", ".appimage", ".sh")

_HASH_CHUNK_SIZE = 1024 * 1024


class ArchiveFormat(str, Enum):
    """Supported archive container formats."""

    ZIP = "zip"
    TAR = "tar"


def detect_format(path: Path) -> ArchiveFormat:
    """Detect the container format from the file contents.

    Raises:
        ExtractionError: If the file is neither a zip nor a tar archive.
    """
    if zipfile.is_zipfile(path):
        return ArchiveFormat.ZIP
    try:
        if tarfile.is_tarfile(path):
            return ArchiveFormat.TAR
    except OSError as e:
        raise ExtractionError(f"Cannot read archive {path.name}: {e}") from e
    raise ExtractionError(f"Unsupported archive format: {path.name}")


def calculate_sha256(path: Path) -> str:
    """Hex SHA-256 digest of a file."""
    digest = hashlib.sha256()
    with path.open("rb") as source:
        for chunk in iter(lambda: source.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_archive(
    path: Path,
    expected_size: int | None = None,
    sha256: str | None = None,
) -> ArchiveFormat:
    """Sanity-check a downloaded archive before extraction.

    Args:
        path: Staged archive.
        expected_size: Exact size in bytes reported by the mirror, if known.
        sha256: Expected hex digest, if the catalog declares one.

    Returns:
        Detected archive format.

    Raises:
        ExtractionError: If any check fails.
    """
    try:
        actual_size = path.stat().st_size
    except OSError as e:
        raise ExtractionError(f"Downloaded archive is missing: {e}") from e

    if actual_size == 0:
        raise ExtractionError("Downloaded archive is empty")
    if expected_size is not None and actual_size != expected_size:
        raise ExtractionError(
            f"Downloaded archive size mismatch: expected {expected_size} bytes, "
            f"got {actual_size}"
        )

    if sha256:
        actual = calculate_sha256(path)
        if actual.lower() != sha256.strip().lower():
            raise ExtractionError(f"Checksum mismatch: expected {sha256}, got {actual}")
        logger.debug("Checksum verified for %s", path.name)

    archive_format = detect_format(path)
    try:
        if archive_format is ArchiveFormat.ZIP:
            with zipfile.ZipFile(path) as archive:
                bad_member = archive.testzip()
            if bad_member is not None:
                raise ExtractionError(f"Archive member is corrupt: {bad_member}")
        else:
            with tarfile.open(path) as archive:
                archive.getmembers()
    except (OSError, zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        raise ExtractionError(f"Archive is corrupt: {e}") from e

    return archive_format


def _safe_member_path(root: Path, name: str) -> Path:
    """Map an archive member name into ``root``.

    Raises:
        ExtractionError: If the name is absolute or escapes ``root``.
    """
    member = PurePosixPath(name.replace("\\", "/"))
    if member.is_absolute() or (member.parts and member.parts[0].endswith(":")):
        raise ExtractionError(f"Archive contains an absolute path: {name}")
    if ".." in member.parts:
        raise ExtractionError(f"Archive contains parent directory traversal: {name}")
    parts = [part for part in member.parts if part not in ("", ".")]
    destination = root.joinpath(*parts).resolve()
    try:
        destination.relative_to(root)
    except ValueError as e:
        raise ExtractionError(f"Archive entry escapes the install directory: {name}") from e
    return destination


def _extract_zip(path: Path, target_dir: Path) -> int:
    root = target_dir.resolve()
    total_bytes = 0
    count = 0
    with zipfile.ZipFile(path) as archive:
        for member in archive.infolist():
            if not member.filename:
                continue
            count += 1
            if count > MAX_ARCHIVE_ENTRIES:
                raise ExtractionError("Archive contains too many entries")

            destination = _safe_member_path(root, member.filename)
            if member.is_dir():
                destination.mkdir(parents=True, exist_ok=True)
                continue

            if member.compress_size == 0 and member.file_size > 0:
                raise ExtractionError(f"Archive member has a suspicious size: {member.filename}")
            if (
                member.compress_size > 0
                and member.file_size > member.compress_size * MAX_COMPRESSION_RATIO
            ):
                raise ExtractionError("Archive exceeds the safe compression ratio")
            total_bytes += member.file_size
            if total_bytes > MAX_ARCHIVE_TOTAL_BYTES:
                raise ExtractionError("Archive expands beyond safe limits")

            destination.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(member) as source, destination.open("wb") as target:
                shutil.copyfileobj(source, target)

            # Preserve unix permission bits recorded by the packer.
            mode = (member.external_attr >> 16) & 0o777
            if mode & stat.S_IXUSR:
                destination.chmod(mode | stat.S_IRUSR | stat.S_IWUSR)
    return count


def _extract_tar(path: Path, target_dir: Path) -> int:
    root = target_dir.resolve()
    with tarfile.open(path) as archive:
        members = archive.getmembers()
        if len(members) > MAX_ARCHIVE_ENTRIES:
            raise ExtractionError("Archive contains too many entries")
        total_bytes = 0
        for member in members:
            _safe_member_path(root, member.name)
            total_bytes += member.size
        if total_bytes > MAX_ARCHIVE_TOTAL_BYTES:
            raise ExtractionError("Archive expands beyond safe limits")
        # The "data" filter rejects links and devices pointing outside root.
        archive.extractall(root, filter="data")
    return len(members)


def extract_archive(path: Path, target_dir: Path, archive_format: ArchiveFormat | None = None) -> int:
    """Extract ``path`` into ``target_dir``.

    Args:
        path: Verified archive.
        target_dir: Empty directory to extract into.
        archive_format: Known format, detected if None.

    Returns:
        Number of archive entries processed.

    Raises:
        ExtractionError: If the archive is unsafe or cannot be unpacked.
    """
    archive_format = archive_format or detect_format(path)
    target_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting %s into %s", path.name, target_dir)
    try:
        if archive_format is ArchiveFormat.ZIP:
            count = _extract_zip(path, target_dir)
        else:
            count = _extract_tar(path, target_dir)
    except ExtractionError:
        raise
    except (OSError, zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        raise ExtractionError(f"Failed to extract archive: {e}") from e
    logger.debug("Extracted %d entries from %s", count, path.name)
    return count


def content_root(directory: Path) -> Path:
    """Return the directory holding the actual package content.

    Archives commonly wrap everything in one top-level folder; in that case
    the folder itself is the content root.
    """
    entries = [entry for entry in directory.iterdir() if entry.name != "__MACOSX"]
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return directory


def _is_candidate(path: Path) -> bool:
    name = path.name.lower()
    if name.endswith(EXECUTABLE_SUFFIXES):
        return True
    if path.suffix:
        return False
    try:
        return bool(path.stat().st_mode & stat.S_IXUSR)
    except OSError:
        return False


def executable_score(relative: Path) -> int:
    """Rank a candidate executable; lower scores are better.

    Deeper files, uninstallers, setup programs, and launchers are pushed
    down; names mentioning the game itself are favoured.
    """
    score = len(relative.parts) * 10
    name = relative.name.lower()
    if "unins" in name or "uninstall" in name:
        score += 1000
    if "setup" in name or "install" in name:
        score += 500
    if "launcher" in name:
        score += 200
    if "game" in name or "play" in name:
        score -= 50
    return score


def find_executable(directory: Path) -> Path | None:
    """Pick the most likely entry point below ``directory``.

    Returns:
        Absolute path of the best candidate, or None if nothing runnable
        was found.
    """
    if not directory.is_dir():
        return None

    candidates: list[Path] = []
    for current, _dirs, files in os.walk(directory):
        for filename in files:
            path = Path(current) / filename
            if path.is_file() and _is_candidate(path):
                candidates.append(path)

    if not candidates:
        return None
    candidates.sort(key=lambda p: (executable_score(p.relative_to(directory)), p.as_posix()))
    logger.debug("Executable candidates in %s: %s", directory, [c.name for c in candidates])
    return candidates[0]


def resolve_entry_point(root: Path, entry_point: str) -> Path | None:
    """Resolve a manifest executable hint inside ``root``.

    The hint may still name the archive's top-level folder even though
    that folder was flattened away during install, so a hint that does
    not resolve as-is is retried without its first component.
    """
    normalised = entry_point.strip().replace("\\", "/")
    components = [part for part in normalised.split("/") if part and part != "."]
    if not components or ".." in components:
        return None

    root_resolved = root.resolve()
    for parts in (components, components[1:]):
        if not parts:
            continue
        candidate = root_resolved.joinpath(*parts).resolve()
        try:
            candidate.relative_to(root_resolved)
        except ValueError:
            return None
        if candidate.is_file():
            return candidate
    return None


def locate_executable(root: Path, executable_hint: str | None = None) -> Path:
    """Find the entry point of an extracted package.

    Raises:
        ExtractionError: If no runnable file exists.
    """
    if executable_hint:
        entry = resolve_entry_point(root, executable_hint)
        if entry is not None:
            logger.info("Resolved configured entry point to %s", entry)
            return entry
        logger.warning("Executable hint %s not found, searching %s", executable_hint, root)

    entry = find_executable(root)
    if entry is None:
        raise ExtractionError("Archive did not contain a runnable executable")
    logger.info("Auto-detected executable %s", entry)
    return entry


def list_files(root: Path) -> list[str]:
    """List installed files relative to ``root``, excluding the marker."""
    files: list[str] = []
    for current, _dirs, filenames in os.walk(root):
        for filename in filenames:
            relative = (Path(current) / filename).relative_to(root).as_posix()
            if relative != MARKER_FILENAME:
                files.append(relative)
    return sorted(files)
