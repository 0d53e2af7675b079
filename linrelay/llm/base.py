"""Chat-completion interface used by the router."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: str  # JSON-encoded, as returned by the model


class ChatReply(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str | None = None
    tool_calls: list[ToolCall] = []
    finish_reason: str | None = None

    def assistant_message(self, tool_calls: list[ToolCall] | None = None) -> dict[str, Any]:
        """The assistant turn to replay before tool results in a follow-up call."""
        calls = self.tool_calls if tool_calls is None else tool_calls
        return {
            "role": "assistant",
            "content": self.content,
            "tool_calls": [
                {"id": c.id, "type": "function", "function": {"name": c.name, "arguments": c.arguments}}
                for c in calls
            ],
        }


class ChatModel(ABC):
    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        max_tokens: int,
        temperature: float,
    ) -> ChatReply:
        """Run one chat completion. Raises ModelError on any failure."""
