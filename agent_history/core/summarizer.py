"""Conversation summarization collaborator.

Condenses a batch of compacted messages into prose. The history window only
depends on the Summarizer protocol; LLMSummarizer is the production
implementation backed by a pydantic_ai agent.

Messages handed to a summarizer never carry storage metadata.
"""

from typing import Protocol

from loguru import logger
from pydantic_ai import Agent

from agent_history.core.errors import SummarizationError
from agent_history.core.message import TOOL_ROLE, Message
from agent_history.services.llm.model import get_model


class Summarizer(Protocol):
    """Turns an ordered batch of messages into a summary string."""

    async def summarize(self, messages: list[Message]) -> str: ...


def _get_summary_prompt() -> str:
    """Get the system prompt for the summary agent.

    Returns:
        System prompt string
    """
    return """You summarize conversations between a user and an AI assistant.
Write a concise summary in plain prose, in the third person.
Keep names, numbers, decisions, and the results of any tool calls.
Do not add information that is not in the messages.
Do not address the user. Return only the summary text."""


def _get_summary_user_prompt(messages: list[Message]) -> str:
    """Render messages as ROLE: content lines for the summary agent."""
    prompt_parts = ["Conversation to summarize:"]
    for msg in messages:
        if msg.role == TOOL_ROLE and msg.tool_call_id:
            prompt_parts.append(f"TOOL ({msg.tool_call_id}): {msg.content}")
        else:
            prompt_parts.append(f"{msg.role.upper()}: {msg.content}")
    return "\n".join(prompt_parts)


class LLMSummarizer:
    """Summarizer backed by a pydantic_ai Agent."""

    def __init__(self, model_name: str = "gpt-4o-mini", provider: str = "openai") -> None:
        self.model_name = model_name
        self.provider = provider

    def _build_agent(self) -> Agent:
        return Agent(
            model=get_model(self.provider, self.model_name),
            system_prompt=_get_summary_prompt(),
            output_type=str,
        )

    async def summarize(self, messages: list[Message]) -> str:
        """Summarize messages via the LLM.

        Raises:
            SummarizationError: If the LLM call fails
        """
        user_prompt = _get_summary_user_prompt(messages)
        try:
            agent = self._build_agent()

            logger.info(
                "Calling LLM for history summary",
                message_count=len(messages),
                model=self.model_name,
            )

            result = await agent.run(user_prompt)
        except Exception as e:
            logger.exception(f"Failed to summarize history via LLM (message_count={len(messages)})")
            raise SummarizationError(len(messages), e) from e

        summary = str(result.output).strip()
        logger.info(
            "history_summary_generated",
            message_count=len(messages),
            summary_chars=len(summary),
        )
        return summary
