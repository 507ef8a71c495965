"""Request and response models for the chat API."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""
    model_config = ConfigDict(populate_by_name=True)


class ChatMessage(BaseModel):
    """Incoming chat message."""
    text: str


class ChatRequest(_CamelModel):
    """Body of ``POST /chat``."""
    message: ChatMessage
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ChatResponse(_CamelModel):
    """Narrated answer for a chat message."""
    text: str
    conversation_id: str = Field(alias="conversationId")


class ClearConversationRequest(_CamelModel):
    """Body of ``POST /clearConversation``."""
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ClearConversationResponse(_CamelModel):
    """Acknowledgement of a cleared conversation."""
    success: bool = True
    message: str
    conversation_id: str = Field(alias="conversationId")


class TurnModel(BaseModel):
    """A single turn as exposed over the API."""
    role: str
    content: str
    timestamp: datetime


class ConversationHistoryResponse(_CamelModel):
    """Stored history for one conversation."""
    conversation_id: str = Field(alias="conversationId")
    history: List[TurnModel]
    message_count: int = Field(alias="messageCount")


class ConversationListResponse(_CamelModel):
    """All conversation ids currently held in memory."""
    conversation_ids: List[str] = Field(alias="conversationIds")
    count: int


class ErrorDetail(BaseModel):
    """Structured error payload."""
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
