"""Shared pydantic models: the contract between the tracker client, tools and router."""

import json
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str


class TeamRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class Label(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


UNKNOWN_STATE = WorkflowState(id="unknown", name="Unknown", type="unknown")
UNKNOWN_TEAM = TeamRef(id="unknown", name="Unknown")


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    identifier: str  # ENG-123
    title: str
    description: str | None = None
    state: WorkflowState = UNKNOWN_STATE
    team: TeamRef = UNKNOWN_TEAM
    assignee: User | None = None
    priority: int = 0  # 0 none, 1 urgent, 2 high, 3 medium, 4 low
    labels: list[Label] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
    url: str


class Team(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    key: str
    description: str | None = None
    states: list[WorkflowState] = []


# ---------------------------------------------------------------------------
# Tracker inputs
# ---------------------------------------------------------------------------


class CreateIssueInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    team_id: str
    description: str | None = None
    priority: int | None = None
    assignee_id: str | None = None
    label_ids: list[str] | None = None
    state_id: str | None = None


class UpdateIssueInput(BaseModel):
    """Fields left as None are not sent, so the tracker keeps their current value."""

    model_config = ConfigDict(frozen=True)

    issue_id: str
    title: str | None = None
    description: str | None = None
    state_id: str | None = None
    priority: int | None = None
    assignee_id: str | None = None
    label_ids: list[str] | None = None


class SearchIssuesInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str | None = None
    team_id: str | None = None
    assignee_id: str | None = None
    state_id: str | None = None
    priority: int | None = None
    limit: int | None = None


# ---------------------------------------------------------------------------
# Conversation and tool plumbing
# ---------------------------------------------------------------------------


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender: Literal["user", "assistant"]
    content: str | dict[str, Any] | list[Any]

    def as_message(self) -> dict[str, str]:
        """Return the chat-completion message for this turn."""
        text = self.content if isinstance(self.content, str) else json.dumps(self.content)
        return {"role": "user" if self.sender == "user" else "assistant", "content": text}


class ToolInvocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool_name: str
    arguments: dict[str, Any] = {}


class TextContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Outcome of one tool execution.

    ``content``/``is_error`` is the envelope handed back to the model; the typed
    payload fields let formatters render results without re-parsing text.
    """

    model_config = ConfigDict(frozen=True)

    content: list[TextContent]
    is_error: bool = False
    issue: Issue | None = None
    issues: list[Issue] | None = None
    teams: list[Team] | None = None
    user: User | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return not self.is_error

    @property
    def text(self) -> str:
        return self.content[0].text if self.content else ""

    @classmethod
    def ok(cls, text: str, **payload: Any) -> "ToolResult":
        return cls(content=[TextContent(text=text)], **payload)

    @classmethod
    def fail(cls, text: str, error: str | None = None) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=True, error=error or text)

    def to_tool_message(self) -> str:
        """Serialise the envelope for a tool-role chat message."""
        return json.dumps(
            {
                "content": [c.model_dump() for c in self.content],
                "isError": self.is_error,
            }
        )


class ToolSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    required: tuple[str, ...] = ()

    def to_openai(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "object", "properties": self.parameters}
        if self.required:
            schema["required"] = list(self.required)
        return {
            "type": "function",
            "function": {"name": self.name, "description": self.description, "parameters": schema},
        }
