"""LLM model resolution for the summarizer."""

import os

from pydantic_ai.models.openai import OpenAIModel

from agent_history.config.settings import settings

SUPPORTED_PROVIDERS = ("openai",)


def get_model(provider: str = "openai", model_name: str | None = None):
    """Resolve a pydantic_ai model for the given provider.

    Args:
        provider: LLM provider name
        model_name: Model identifier; defaults to settings.summary_model

    Raises:
        ValueError: If the provider is not supported
    """
    model_name = model_name or settings.summary_model
    if provider == "openai":
        # pydantic_ai reads the key from the environment
        if settings.openai_api_key and not os.getenv("OPENAI_API_KEY"):
            os.environ["OPENAI_API_KEY"] = settings.openai_api_key
        return OpenAIModel(model_name)

    raise ValueError(f"Unsupported LLM provider: {provider}. Must be one of: {', '.join(SUPPORTED_PROVIDERS)}")
