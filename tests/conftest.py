"""Root conftest for all tests.

Shared fixtures: in-memory store, a recording summarizer, and message factories.
"""

from collections.abc import Callable

import pytest
from loguru import logger

from agent_history.core.history_metrics import reset_history_counters
from agent_history.core.history_store import InMemoryHistoryStore
from agent_history.core.history_window import HistoryWindow
from agent_history.core.message import HistoryState, Message, tag_message


class RecordingSummarizer:
    """Summarizer fake that records every batch it receives."""

    def __init__(self, reply: str = "summary") -> None:
        self.reply = reply
        self.calls: list[list[Message]] = []

    async def summarize(self, messages: list[Message]) -> str:
        self.calls.append(list(messages))
        return f"{self.reply} #{len(self.calls)}"


def _make_message(index: int, role: str | None = None, tool_call_id: str | None = None) -> Message:
    if role is None:
        role = "user" if index % 2 == 0 else "assistant"
    if role == "tool" and tool_call_id is None:
        tool_call_id = f"call_{index}"
    return Message(role=role, content=f"m{index}", tool_call_id=tool_call_id)


@pytest.fixture(autouse=True)
def reset_counters():
    reset_history_counters()
    yield
    reset_history_counters()


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep loguru output off the console during tests."""
    logger.remove()
    yield


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Factory for numbered messages (content "m<index>").

    Alternates user/assistant unless a role is given; tool messages get a
    "call_<index>" tool_call_id by default.
    """
    return _make_message


@pytest.fixture
def make_state() -> Callable[..., HistoryState]:
    """Factory for a stored HistoryState with one tagged message per role."""

    def _make_state(roles: list[str], summary: str = "") -> HistoryState:
        return HistoryState(
            messages=[tag_message(_make_message(i, role)) for i, role in enumerate(roles)],
            summary=summary,
        )

    return _make_state


@pytest.fixture
def store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def summarizer() -> RecordingSummarizer:
    return RecordingSummarizer()


@pytest.fixture
def history(store: InMemoryHistoryStore, summarizer: RecordingSummarizer) -> HistoryWindow:
    return HistoryWindow(store=store, summarizer=summarizer)
