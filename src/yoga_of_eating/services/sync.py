"""Cloud sync of archived daily snapshots."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from yoga_of_eating.domain.history import DailySnapshot
from yoga_of_eating.services.archive import DailyArchive

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class AuthenticationRequiredError(RuntimeError):
    """Raised when a cloud operation needs a signed-in user and has none."""


class SyncError(RuntimeError):
    """Raised when a snapshot upload fails and the sync is aborted."""


class CloudSyncRepository(Protocol):
    """Remote store of daily snapshots keyed by user and day."""

    def upload(self, snapshot: DailySnapshot, user_id: str) -> None:
        """Create or overwrite the snapshot for its day."""

    def fetch_all(self, user_id: str) -> list[DailySnapshot]:
        """Return every stored snapshot for a user."""


class AuthProvider(Protocol):
    """Source of the signed-in user's id."""

    def current_user_id(self) -> str | None:
        """Return the signed-in user id, or None when signed out."""


@dataclass
class CloudSyncService:
    """Uploads and restores the local archive."""

    repository: CloudSyncRepository
    auth: AuthProvider
    clock: Callable[[], datetime] = field(default=_utc_now)

    async def sync_archive(self, archive: DailyArchive) -> int:
        """Upload every snapshot sequentially and return how many were sent.

        The first failed upload aborts the remaining ones.
        """
        user_id = self._require_user()
        uploaded = 0
        for snapshot in archive.snapshots:
            try:
                await asyncio.to_thread(self.repository.upload, snapshot, user_id)
            except Exception as exc:
                _logger.warning(
                    "Cloud sync aborted at %s after %s uploads: %s",
                    snapshot.date.date().isoformat(),
                    uploaded,
                    exc,
                )
                raise SyncError(
                    f"Failed to upload snapshot for {snapshot.date.date().isoformat()}"
                ) from exc
            uploaded += 1
        archive.mark_synced(self.clock())
        _logger.info("Cloud sync uploaded %s snapshots", uploaded)
        return uploaded

    async def restore_archive(self, archive: DailyArchive) -> int:
        """Add remote snapshots for days missing locally; return the count."""
        user_id = self._require_user()
        try:
            remote = await asyncio.to_thread(self.repository.fetch_all, user_id)
        except Exception as exc:
            raise SyncError("Failed to fetch remote snapshots") from exc
        restored = 0
        for snapshot in remote:
            if archive.get(snapshot.date) is None:
                archive.upsert(snapshot)
                restored += 1
        _logger.info("Cloud restore added %s snapshots", restored)
        return restored

    def _require_user(self) -> str:
        user_id = self.auth.current_user_id()
        if not user_id:
            raise AuthenticationRequiredError("Sign in to sync your history")
        return user_id
