"""Supabase repository for daily logs."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from diet_tracker.services.store import LogRepository


@dataclass
class SupabaseLogRepository(LogRepository):
    """Supabase implementation storing one row per date."""

    client: Client
    table: str = "daily_logs"

    def load_all(self) -> dict[str, dict[str, object]]:
        """Return every stored payload keyed by date."""
        response = self.client.table(self.table).select("day, payload").execute()
        logs: dict[str, dict[str, object]] = {}
        for row in response.data or []:
            payload = row.get("payload")
            if isinstance(payload, dict):
                logs[str(row["day"])] = payload
        return logs

    def save_log(self, day: str, payload: dict[str, object]) -> None:
        """Insert or replace the row for a date."""
        response = (
            self.client.table(self.table)
            .upsert(
                {
                    "day": day,
                    "payload": payload,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="day",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to save daily log {day}")
