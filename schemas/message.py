"""Pydantic models for conversation turns."""

from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    role: Role
    content: str

    def to_api(self) -> dict:
        """Shape expected by chat-completions style APIs."""
        return {"role": self.role.value, "content": self.content}
