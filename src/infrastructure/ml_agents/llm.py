from langchain_openai import ChatOpenAI

from src.config.settings_env import settings as default_settings


def build_chat_model(model_name: str, settings=None, max_tokens: int = 2000) -> ChatOpenAI:
    """Create the chat client for an OpenAI-compatible endpoint.

    Model names prefixed with ``ollama/`` are served from ``OPENAI_API_BASE`` and
    need no key; anything else goes to OpenAI and needs a real key.
    """
    settings = settings or default_settings
    api_key = settings.OPENAI_API_KEY

    if "ollama" in model_name.lower():
        return ChatOpenAI(
            model=model_name.replace("ollama/", ""),
            openai_api_key="dummy",  # Ollama doesn't need a key
            openai_api_base=settings.OPENAI_API_BASE,
            temperature=0.1,
            max_tokens=max_tokens,
        )
    elif api_key and api_key != "dummy":
        return ChatOpenAI(
            model=model_name,
            openai_api_key=api_key,
            temperature=0.1,
            max_tokens=max_tokens,
        )
    else:
        raise ValueError("No valid LLM configuration found. Please set either Ollama or a valid OpenAI API key.")
