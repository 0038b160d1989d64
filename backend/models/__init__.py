"""Data models for the portfolio chat assistant."""
from .conversation import ChatTurn, ConversationContext, Role, ThreadBinding
from .topic import TopicCategory
from .run import RemoteRun, RunStatus
from .api import ChatRequest, ChatResponse, ErrorResponse

__all__ = [
    "ChatTurn",
    "ConversationContext",
    "Role",
    "ThreadBinding",
    "TopicCategory",
    "RemoteRun",
    "RunStatus",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
]
