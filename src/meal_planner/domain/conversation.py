"""Conversation models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ConversationMessage:
    """A chat message attached to a planning run."""

    role: str
    content: str
    created_at: datetime | None = None
