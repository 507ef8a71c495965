"""Conversation data models."""
from dataclasses import dataclass
from datetime import datetime

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
ROLES = (USER_ROLE, ASSISTANT_ROLE)


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single recorded message in a conversation."""
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime  # timezone-aware UTC
