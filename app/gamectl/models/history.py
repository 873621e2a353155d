"""History records for install, update, and repair sessions.

Each finished session is stored as one JSON line; see
gamectl.core.state.StateManager for the file itself.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HistoryActionType(str, Enum):
    """Kind of session that produced a history entry."""

    INSTALL = "install"
    UPDATE = "update"
    REPAIR = "repair"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """A game touched by a session.

    Attributes:
        package_id: Catalog id of the game.
        version: Version live after the session, if known.
        previous_version: Version live before an update.
    """

    package_id: str
    version: str | None = None
    previous_version: str | None = None

    def __post_init__(self) -> None:
        if not self.package_id:
            msg = "Package id cannot be empty"
            raise ValueError(msg)

    @property
    def version_label(self) -> str:
        """'2.2.3 -> 2.3.0' for updates, the plain version otherwise."""
        if self.previous_version and self.version:
            return f"{self.previous_version} -> {self.version}"
        return self.version or "-"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"package_id": self.package_id}
        if self.version is not None:
            result["version"] = self.version
        if self.previous_version is not None:
            result["previous_version"] = self.previous_version
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryItem:
        return cls(
            package_id=data["package_id"],
            version=data.get("version"),
            previous_version=data.get("previous_version"),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Outcome of one session.

    Attributes:
        id: 12-character hex id.
        timestamp: ISO 8601 time the session ended, with timezone.
        action_type: install, update or repair.
        items: Games the session touched (one in practice).
        success: False when the session failed or was cancelled.
        metadata: Mirror used, restored files, or the error message.
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    items: tuple[HistoryItem, ...]
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    @property
    def recorded_at(self) -> datetime:
        """Timestamp parsed into an aware datetime."""
        return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))

    @property
    def error(self) -> str:
        return str(self.metadata.get("error", ""))

    def touches(self, package_id: str) -> bool:
        """True if any item refers to package_id."""
        return any(item.package_id == package_id for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "items": [item.to_dict() for item in self.items],
            "success": self.success,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Build an entry from its stored form.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type or item data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            items=tuple(HistoryItem.from_dict(item) for item in data["items"]),
            success=data.get("success", True),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Compact single-line JSON, no trailing newline."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        return cls.from_dict(json.loads(line.strip()))


def create_history_entry(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    success: bool = True,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Create an entry stamped with a fresh id and the current UTC time.

    Raises:
        ValueError: If items is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        items=tuple(items),
        success=success,
        metadata=metadata or {},
    )
