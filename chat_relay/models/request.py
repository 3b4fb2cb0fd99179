from pydantic import BaseModel, Field
from typing import Dict, List
from enum import Enum


class ChatMessageRole(str, Enum):
    """Chat message role enumeration"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """Single chat message"""
    role: ChatMessageRole
    # Empty content is allowed: a streamed assistant placeholder may come
    # back in the history before any text arrived.
    content: str = ""

    def to_provider(self) -> Dict[str, str]:
        """Message in the provider's wire shape"""
        return {"role": self.role.value, "content": self.content}


class ChatRequest(BaseModel):
    """Chat request model: the whole conversation, oldest turn first"""
    messages: List[ChatMessage] = Field(
        ...,
        min_length=1,
        description="Conversation history in chronological order"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "messages": [
                    {"role": "user", "content": "How do I start budgeting?"}
                ]
            }
        }
