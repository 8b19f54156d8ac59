"""Bounded conversation history with rolling-summary compaction.

HistoryWindow keeps an ordered, persisted list of messages plus one summary string.

Append path:  tag -> extend -> maybe trim prefix -> maybe summarize -> persist
Read path:    load -> strip metadata -> take last N -> lead-in repair

Core invariants:
1. Stored messages are chronological and never reordered
2. A tool response at the cut boundary is trimmed together with its trigger
3. The summary is replaced on each compaction, never concatenated
4. Storage metadata (id, createdAt) never reaches the summarizer or the caller
5. Trim, summary and appended messages are persisted together or not at all

Concurrency: appends on one HistoryWindow are serialized by an asyncio.Lock.
Separate HistoryWindow instances (or processes) sharing a store are not
coordinated; concurrent writers there can lose updates.
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from agent_history.config.settings import Settings
from agent_history.config.settings import settings as default_settings
from agent_history.core.errors import SummarizationError
from agent_history.core.history_config import HistoryPolicy
from agent_history.core.history_metrics import increment_history_counter
from agent_history.core.history_store import HistoryStore, build_history_store
from agent_history.core.message import TOOL_ROLE, Message, StoredMessage, strip_metadata, tag_message
from agent_history.core.summarizer import LLMSummarizer, Summarizer


def compute_trim_count(messages: Sequence[Message], policy: HistoryPolicy) -> tuple[int, bool]:
    """Decide how many leading messages a compaction removes.

    The message at index trim_size - 1 is the last one a plain trim would remove.
    If it is a tool response, one extra message is removed so the response is
    trimmed together with the message that triggered it.

    Args:
        messages: Stored messages, oldest first (len >= policy.compaction_threshold)
        policy: Windowing policy

    Returns:
        (number of messages to remove, whether the tool boundary rule applied)
    """
    tool_boundary = messages[policy.trim_size - 1].role == TOOL_ROLE
    cut = policy.trim_size + 1 if tool_boundary else policy.trim_size
    return cut, tool_boundary


def select_recent_window(messages: Sequence[Message], window_size: int) -> tuple[list[Message], bool]:
    """Take the last window_size messages, reattaching a dangling tool lead-in.

    If the window opens on a tool response and an earlier message exists, that
    message is prepended. Without one, the window is returned as-is.

    Returns:
        (window, whether lead-in repair was applied)
    """
    start = max(len(messages) - window_size, 0)
    window = list(messages[start:])
    if window and window[0].role == TOOL_ROLE and start > 0:
        return [messages[start - 1], *window], True
    return window, False


class HistoryWindow:
    """Persisted, self-compacting conversation history for one agent."""

    def __init__(
        self,
        store: HistoryStore,
        summarizer: Summarizer,
        policy: HistoryPolicy | None = None,
    ) -> None:
        self.store = store
        self.summarizer = summarizer
        self.policy = policy or HistoryPolicy()
        self._write_lock = asyncio.Lock()

    async def append_messages(self, messages: Sequence[Message]) -> None:
        """Append messages, compacting the stored prefix when it grows too long.

        Nothing is persisted unless every step succeeds: if the summarizer fails,
        the store keeps its previous state and SummarizationError propagates.

        Args:
            messages: New messages in chronological order

        Raises:
            HistoryStoreError: If the store cannot be loaded or written
            SummarizationError: If summarizing the compacted prefix fails
        """
        async with self._write_lock:
            state = await self.store.load()
            stored: list[StoredMessage] = [*state.messages, *(tag_message(m) for m in messages)]
            summary = state.summary

            if len(stored) >= self.policy.compaction_threshold:
                stored, summary = await self._compact(stored, summary)

            await self.store.write(state.model_copy(update={"messages": stored, "summary": summary}))

        increment_history_counter("messages_appended", len(messages))
        logger.debug(
            "history_appended",
            appended=len(messages),
            message_count=len(stored),
            event="history_appended",
        )

    async def _compact(self, stored: list[StoredMessage], summary: str) -> tuple[list[StoredMessage], str]:
        count_before = len(stored)
        cut, tool_boundary = compute_trim_count(stored, self.policy)
        remaining = stored[cut:]

        logger.info(
            "history_compacted",
            removed=cut,
            remaining=len(remaining),
            message_count_before=count_before,
            tool_boundary=tool_boundary,
            event="history_compacted",
        )
        increment_history_counter("compactions_run")

        batch = [strip_metadata(m) for m in remaining[: self.policy.trim_size]]
        try:
            new_summary = await self.summarizer.summarize(batch)
        except Exception as e:
            increment_history_counter("summarization_failures")
            logger.warning(
                "Summarization failed, compaction not persisted",
                message_count=len(batch),
                error=str(e),
                event="history_summarization_failed",
            )
            if isinstance(e, SummarizationError):
                raise
            raise SummarizationError(len(batch), e) from e

        increment_history_counter("summaries_created")
        logger.info(
            "history_compaction_summarized",
            summarized=len(batch),
            summary_chars=len(new_summary),
            event="history_compaction_summarized",
        )
        return remaining, new_summary

    async def get_recent_window(self) -> list[Message]:
        """Return the most recent messages, metadata stripped.

        Returns window_size messages, or window_size + 1 when a dangling tool
        response needs its preceding message. Shorter histories return everything.
        """
        state = await self.store.load()
        messages = [strip_metadata(m) for m in state.messages]
        window, repaired = select_recent_window(messages, self.policy.window_size)

        if repaired:
            increment_history_counter("lead_in_repairs")
        logger.debug(
            "history_window_read",
            message_count=len(messages),
            window_size=len(window),
            lead_in_repaired=repaired,
            event="history_window_read",
        )
        return window

    async def get_summary(self) -> str:
        """Return the current summary ("" before the first compaction)."""
        state = await self.store.load()
        return state.summary

    async def record_tool_response(self, tool_call_id: str, response_text: str) -> None:
        """Append a tool-role message answering tool_call_id."""
        await self.append_messages([Message(role=TOOL_ROLE, content=response_text, tool_call_id=tool_call_id)])


def create_history_window(
    settings: Settings | None = None,
    *,
    store: HistoryStore | None = None,
    summarizer: Summarizer | None = None,
) -> HistoryWindow:
    """Build a HistoryWindow from settings, with optional collaborator overrides."""
    settings = settings or default_settings
    return HistoryWindow(
        store=store or build_history_store(settings),
        summarizer=summarizer or LLMSummarizer(model_name=settings.summary_model),
        policy=HistoryPolicy.from_settings(settings),
    )
