"""Supabase repository for run conversation messages."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_planner.domain.conversation import ConversationMessage
from meal_planner.services.directives import MessageRepository


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for agent messages."""

    client: Client

    def list_messages(self, user_id: str, run_id: str) -> list[ConversationMessage]:
        """Return a run's messages oldest first."""
        response = (
            self.client.table("agent_messages")
            .select("role,content,created_at")
            .eq("user_id", user_id)
            .eq("run_id", run_id)
            .order("created_at")
            .execute()
        )
        return [
            ConversationMessage(
                role=str(row.get("role") or "user"),
                content=str(row.get("content") or ""),
                created_at=_parse_timestamp(row.get("created_at")),
            )
            for row in response.data or []
        ]

    def add_message(self, user_id: str, run_id: str, role: str, content: str) -> None:
        """Insert a message into the run's conversation."""
        self.client.table("agent_messages").insert(
            {"user_id": user_id, "run_id": run_id, "role": role, "content": content}
        ).execute()


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
