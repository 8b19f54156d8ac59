"""Message schema and storage metadata tagging.

This module defines the message shapes that flow through the history window:

- Message: the wire-level shape shared with the agent layer and the summarizer
- StoredMessage: a Message plus storage-only bookkeeping (id, createdAt)

Core invariant: storage metadata is added exactly once (at append time) and is
stripped before anything leaves the store boundary.
"""

from datetime import datetime, timezone
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["user", "assistant", "system", "tool"]

TOOL_ROLE = "tool"


class Message(BaseModel):
    """Canonical message exchanged with the agent layer.

    Fields:
        role: Message role - one of: user, assistant, system, tool
        content: Message text
        tool_call_id: Tool-call identifier (tool-role messages only)
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(..., description="Message role")
    content: str = Field(..., description="Message content as string")
    tool_call_id: str | None = Field(default=None, description="Tool-call identifier for tool responses")

    def to_payload(self) -> dict[str, Any]:
        """Return the wire form: {role, content, tool_call_id?}."""
        return self.model_dump(exclude_none=True)


class StoredMessage(Message):
    """Message plus storage-only metadata.

    Fields:
        id: Globally unique identifier (uuid4)
        created_at: ISO-8601 creation timestamp (UTC), persisted as ``createdAt``
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Unique message identifier")
    created_at: str = Field(..., alias="createdAt", description="ISO-8601 timestamp (UTC)")

    def to_document(self) -> dict[str, Any]:
        """Serialize for persistence, using the stored field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


def tag_message(message: Message) -> StoredMessage:
    """Attach a fresh identifier and creation timestamp to a message.

    Args:
        message: Plain message

    Returns:
        StoredMessage carrying the original fields plus id/createdAt
    """
    return StoredMessage(
        role=message.role,
        content=message.content,
        tool_call_id=message.tool_call_id,
        id=str(uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def strip_metadata(stored: StoredMessage) -> Message:
    """Drop storage metadata, returning the plain message."""
    return Message(role=stored.role, content=stored.content, tool_call_id=stored.tool_call_id)


class HistoryState(BaseModel):
    """Persisted aggregate: ordered messages plus a single rolling summary.

    Messages are in chronological order (oldest first) and are never reordered.
    The summary is replaced wholesale on each compaction.
    """

    messages: list[StoredMessage] = Field(default_factory=list)
    summary: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "messages": [m.to_document() for m in self.messages],
            "summary": self.summary,
        }
