"""Operation history persisted as JSON Lines.

Install, update, and repair sessions each append one entry when they end,
successful or not. Sessions run on worker threads, so appends are
serialized per manager.
"""

import json
import logging
import threading
from pathlib import Path

from gamectl.core.paths import ensure_dir, get_history_path
from gamectl.models.history import HistoryEntry

logger = logging.getLogger(__name__)


class StateManager:
    """Append-only store for HistoryEntry records.

    Storage location: ~/.local/state/gamectl/history.jsonl

    Reads tolerate damage: a line that does not parse is logged and
    skipped, the rest of the file still loads.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        self._history_path = (
            state_dir / self.HISTORY_FILENAME if state_dir is not None else get_history_path()
        )
        self._lock = threading.Lock()

    @property
    def history_path(self) -> Path:
        return self._history_path

    def record_action(self, entry: HistoryEntry) -> None:
        """Append one entry.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        line = entry.to_json_line() + "\n"
        with self._lock:
            ensure_dir(self._history_path.parent, "state")
            with self._history_path.open(mode="a", encoding="utf-8") as f:
                f.write(line)

    def get_history(
        self,
        limit: int | None = None,
        package_id: str | None = None,
    ) -> list[HistoryEntry]:
        """Read entries newest first.

        Args:
            limit: Maximum number of entries; None returns everything.
            package_id: Only entries that touched this game.
        """
        if not self._history_path.exists():
            return []

        entries = [
            entry
            for entry in self._read_entries()
            if package_id is None or entry.touches(package_id)
        ]
        entries.reverse()
        return entries if limit is None else entries[:limit]

    def _read_entries(self) -> list[HistoryEntry]:
        entries: list[HistoryEntry] = []
        with self._history_path.open(encoding="utf-8") as f:
            for line_num, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    entries.append(HistoryEntry.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, e)
        return entries
