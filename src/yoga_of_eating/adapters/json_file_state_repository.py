"""JSON file repository for the journal state."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from yoga_of_eating.domain.history import PersistedState
from yoga_of_eating.services.serialization import state_from_dict, state_to_dict
from yoga_of_eating.services.session import StateRepository

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStateRepository(StateRepository):
    """Stores the working set and archive in a single JSON document."""

    path: Path

    def load(self) -> PersistedState | None:
        """Return the saved state, or None when absent or unreadable."""
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("Could not read journal state %s: %s", self.path, exc)
            return None
        if not isinstance(document, dict):
            _logger.warning("Journal state %s is not a JSON object", self.path)
            return None
        try:
            return state_from_dict(document)
        except (KeyError, TypeError, ValueError) as exc:
            _logger.warning("Journal state %s is malformed: %s", self.path, exc)
            return None

    def save(self, state: PersistedState) -> None:
        """Atomically replace the saved document."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state_to_dict(state), ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
