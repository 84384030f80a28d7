"""JSON file repository for daily logs."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from diet_tracker.services.store import LogRepository

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileLogRepository(LogRepository):
    """Stores every daily log in one JSON object keyed by date."""

    path: Path

    def load_all(self) -> dict[str, dict[str, object]]:
        """Read the whole mapping; a missing file is an empty store."""
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def save_log(self, day: str, payload: dict[str, object]) -> None:
        """Rewrite the file with one log replaced."""
        try:
            data = self.load_all()
        except ValueError:
            corrupt_path = self.path.with_suffix(self.path.suffix + ".corrupt")
            _logger.warning("Moving unreadable %s to %s", self.path, corrupt_path)
            os.replace(self.path, corrupt_path)
            data = {}
        data[day] = payload
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)
