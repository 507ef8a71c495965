"""Data models for the BigQuery chat assistant."""
from .catalog import TableColumn, TableDescriptor
from .conversation import ConversationTurn, USER_ROLE, ASSISTANT_ROLE, ROLES
from .api import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ClearConversationRequest,
    ClearConversationResponse,
    TurnModel,
    ConversationHistoryResponse,
    ConversationListResponse,
    ErrorDetail,
)

__all__ = [
    "TableColumn",
    "TableDescriptor",
    "ConversationTurn",
    "USER_ROLE",
    "ASSISTANT_ROLE",
    "ROLES",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ClearConversationRequest",
    "ClearConversationResponse",
    "TurnModel",
    "ConversationHistoryResponse",
    "ConversationListResponse",
    "ErrorDetail",
]
