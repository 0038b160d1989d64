"""Request and response schemas for the chat API."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Inbound chat message from the portfolio site."""
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so a missing message is answered with 400, not 422
    message: Optional[str] = None
    user_id: str = Field(default="anonymous", alias="userId")
    session_id: str = Field(default="default", alias="sessionId")


class ChatResponse(BaseModel):
    response: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
