"""JSON file key-value store for user preferences and body metrics."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from yoga_of_eating.services.health_profile import PreferenceStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFilePreferenceStore(PreferenceStore):
    """Preference store backed by a flat JSON object on disk."""

    path: Path

    def get(self, key: str) -> object | None:
        """Return the stored value for a key, if present."""
        return self._read().get(key)

    def set(self, key: str, value: object) -> None:
        """Store a value and rewrite the file."""
        values = self._read()
        values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(values, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            values = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("Could not read preferences %s: %s", self.path, exc)
            return {}
        return values if isinstance(values, dict) else {}
