"""LLM provider configuration using LangChain abstractions."""

from langchain_core.language_models.chat_models import BaseChatModel

from config.settings import Settings


def get_llm(settings: Settings, temperature: float = 0.7) -> BaseChatModel:
    """Create and return the configured chat model.

    Uses LangChain's BaseChatModel abstraction for LLM-agnostic access.
    Default: Anthropic Claude via langchain-anthropic.
    """
    provider = settings.repochat_llm_provider.lower()

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=settings.repochat_llm_model,
            temperature=temperature,
            api_key=settings.anthropic_api_key,
        )
    elif provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.repochat_llm_model,
            temperature=temperature,
            api_key=settings.openai_api_key,
        )
    elif provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=settings.repochat_llm_model,
            temperature=temperature,
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider: {provider}. "
            "Supported: 'anthropic', 'openai', 'google'"
        )
