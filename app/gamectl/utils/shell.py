"""Process launching utilities.

Provides detached process spawning for installed game executables.
"""

import os
import stat
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class LaunchResult:
    """Result of spawning a game process.

    Attributes:
        pid: Process id of the spawned process.
        args: Command line that was executed.
        cwd: Working directory of the process.
    """

    pid: int
    args: tuple[str, ...]
    cwd: str


def build_launch_command(executable: Path) -> list[str]:
    """Build the command line that runs ``executable`` on this platform.

    Windows executables run through Wine on non-Windows hosts; shell
    scripts without the executable bit run through ``sh``.

    Args:
        executable: Entry point of an installed game.

    Returns:
        Argument list for subprocess.
    """
    suffix = executable.suffix.lower()
    if suffix == ".exe" and sys.platform != "win32":
        return ["wine", str(executable)]
    if suffix == ".sh" and not os.access(executable, os.X_OK):
        return ["sh", str(executable)]
    return [str(executable)]


def ensure_executable(path: Path) -> None:
    """Add the user executable bit to ``path`` if it is missing."""
    if sys.platform == "win32":
        return
    mode = path.stat().st_mode
    if path.suffix.lower() in (".x86_64", ".appimage") and not mode & stat.S_IXUSR:
        path.chmod(mode | stat.S_IXUSR)


def spawn_detached(
    args: list[str],
    *,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> LaunchResult:
    """Start a process that outlives the launcher.

    Unlike a blocking run, the child gets its own session and no pipes,
    so closing the launcher does not terminate the game.

    Args:
        args: Command and arguments to execute.
        cwd: Working directory for the process.
        env: Additional environment variables (merged with current env).

    Returns:
        LaunchResult for the spawned process.

    Raises:
        FileNotFoundError: If the command executable is not found.
        OSError: If the process cannot be started.
    """
    full_env = {**os.environ, **(env or {})}
    process = subprocess.Popen(
        args,
        cwd=cwd,
        env=full_env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    return LaunchResult(pid=process.pid, args=tuple(args), cwd=cwd or os.getcwd())
