"""Supabase repository for planning runs."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from meal_planner.domain.plans import AgentRunRecord
from meal_planner.services.runs import AgentRunRepository

_STATUS_TIMESTAMPS = {"approved": "approved_at", "applied": "applied_at"}


@dataclass
class SupabaseRunRepository(AgentRunRepository):
    """Supabase implementation for agent runs."""

    client: Client

    def get_run(self, user_id: str, run_id: str) -> AgentRunRecord | None:
        """Return a run owned by the user, if present."""
        response = (
            self.client.table("agent_runs")
            .select("*")
            .eq("id", run_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_run(response.data[0])

    def save_draft(
        self,
        run_id: str,
        output_draft: dict[str, object],
        summary: dict[str, object],
    ) -> None:
        """Store a draft and reset the run to draft status."""
        self.client.table("agent_runs").update(
            {
                "status": "draft",
                "output_draft": output_draft,
                "summary": summary,
                "error_message": "",
                "updated_at": _now(),
            }
        ).eq("id", run_id).execute()

    def mark_failed(self, run_id: str, error_message: str) -> None:
        """Mark the run as failed."""
        self.client.table("agent_runs").update(
            {"status": "failed", "error_message": error_message, "updated_at": _now()}
        ).eq("id", run_id).execute()

    def update_status(self, run_id: str, status: str) -> None:
        """Set the run status, stamping approval and apply times."""
        now = _now()
        payload: dict[str, object] = {"status": status, "updated_at": now}
        stamp = _STATUS_TIMESTAMPS.get(status)
        if stamp:
            payload[stamp] = now
        self.client.table("agent_runs").update(payload).eq("id", run_id).execute()


def _parse_run(row: dict[str, object]) -> AgentRunRecord:
    draft = row.get("output_draft")
    summary = row.get("summary")
    return AgentRunRecord(
        id=str(row["id"]),
        user_id=str(row.get("user_id") or ""),
        status=str(row.get("status") or "draft"),
        date_start=str(row.get("date_start") or ""),
        date_end=str(row.get("date_end") or ""),
        output_draft=draft if isinstance(draft, dict) else None,
        summary=summary if isinstance(summary, dict) else None,
        error_message=str(row.get("error_message") or ""),
    )


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()
