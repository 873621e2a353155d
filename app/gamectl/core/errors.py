"""Exception hierarchy for install and update operations.

Recoverable transfer errors (NetworkError, HTTPStatusError) are absorbed
by the download engine and drive mirror fallback. Everything else is fatal
for the running operation and ends its session with a failed status.
"""

from dataclasses import dataclass


class GamectlError(Exception):
    """Base exception for all gamectl errors."""


class NetworkError(GamectlError):
    """Raised when a transfer from a single mirror fails.

    Covers connection errors, timeouts, and truncated bodies. Recoverable:
    the download engine moves on to the next mirror.
    """


class HTTPStatusError(NetworkError):
    """Raised when a mirror answers with a non-success status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class MirrorFailure:
    """Why a single mirror attempt failed.

    Attributes:
        mirror_name: Display name of the mirror.
        url: URL that was requested.
        reason: Human-readable failure cause.
    """

    mirror_name: str
    url: str
    reason: str

    def __str__(self) -> str:
        return f"{self.mirror_name}: {self.reason}"


class AllMirrorsExhaustedError(GamectlError):
    """Raised when every mirror of an operation has failed.

    Attributes:
        failures: Ordered per-mirror failure reasons.
    """

    def __init__(self, failures: list[MirrorFailure] | tuple[MirrorFailure, ...]) -> None:
        self.failures: tuple[MirrorFailure, ...] = tuple(failures)
        if self.failures:
            details = "; ".join(str(failure) for failure in self.failures)
            message = f"All {len(self.failures)} mirror(s) failed: {details}"
        else:
            message = "No download mirrors are configured"
        super().__init__(message)


class ExtractionError(GamectlError):
    """Raised when a downloaded archive cannot be verified or unpacked."""


class DiskSpaceError(GamectlError):
    """Raised when there is not enough free space for an install."""

    def __init__(self, required_bytes: int, available_bytes: int) -> None:
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes
        super().__init__(
            f"Not enough disk space: {required_bytes} bytes required, "
            f"{available_bytes} bytes available"
        )


class AlreadyInProgressError(GamectlError):
    """Raised when an operation is requested for a busy package."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"An operation is already in progress for '{package_id}'")


class NoActiveSessionError(GamectlError):
    """Raised when cancelling a package that has no running operation."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"No active operation for '{package_id}'")


class OperationCancelledError(GamectlError):
    """Raised inside a worker when its operation was cancelled."""


class InvalidTransitionError(GamectlError):
    """Raised when a session is moved to a state it cannot reach."""


class PackageNotFoundError(GamectlError):
    """Raised when a package id is not present in the catalog."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"Unknown package: '{package_id}'")


class NotInstalledError(GamectlError):
    """Raised when an operation needs an installed package."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"Package '{package_id}' is not installed")


class RepairNotEnabledError(GamectlError):
    """Raised when repair is requested for a package that disallows it."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"Repair is not enabled for '{package_id}'")


class RepairValidationError(GamectlError):
    """Raised when an installed package fails validation.

    Handled by the repair engine, which reinstalls the package instead
    of surfacing the error.
    """


class PackageUnavailableError(GamectlError):
    """Raised when a catalog entry cannot be downloaded yet."""

    def __init__(self, package_id: str, reason: str = "is not available for download") -> None:
        self.package_id = package_id
        super().__init__(f"Package '{package_id}' {reason}")
