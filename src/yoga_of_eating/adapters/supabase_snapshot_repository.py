"""Supabase repository for cloud-synced daily snapshots."""

from dataclasses import dataclass

from supabase import Client

from yoga_of_eating.domain.history import DailySnapshot
from yoga_of_eating.services.serialization import snapshot_from_dict, snapshot_to_dict
from yoga_of_eating.services.sync import CloudSyncRepository

SNAPSHOTS_TABLE = "heatmap_snapshots"


@dataclass
class SupabaseSnapshotRepository(CloudSyncRepository):
    """Stores one row per user and calendar day."""

    client: Client

    def upload(self, snapshot: DailySnapshot, user_id: str) -> None:
        """Create or overwrite the row for the snapshot's day."""
        self.client.table(SNAPSHOTS_TABLE).upsert(
            {
                "user_id": user_id,
                "day": snapshot.date.date().isoformat(),
                "meal_count": snapshot.meal_count,
                "average_health_score": snapshot.average_health_score,
                "mood": snapshot.mood_state.mood.value,
                "mood_scale": snapshot.mood_state.scale,
                "snapshot_json": snapshot_to_dict(snapshot),
            },
            on_conflict="user_id,day",
        ).execute()

    def fetch_all(self, user_id: str) -> list[DailySnapshot]:
        """Return every stored snapshot for a user, newest first."""
        response = (
            self.client.table(SNAPSHOTS_TABLE)
            .select("day, snapshot_json")
            .eq("user_id", user_id)
            .order("day", desc=True)
            .execute()
        )
        snapshots = []
        for row in response.data or []:
            payload = row.get("snapshot_json")
            if isinstance(payload, dict):
                snapshots.append(snapshot_from_dict(payload))
        return snapshots
