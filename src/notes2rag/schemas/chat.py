"""Schemas for chat sessions."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: str  # user, assistant
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ChatSession(BaseModel):
    """Full chat session metadata."""

    started_at: datetime = Field(default_factory=datetime.now)
    messages: list[ChatMessage] = Field(default_factory=list)
    scope: list[str] = Field(default_factory=list)
