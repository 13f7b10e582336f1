"""
Provider factory and router singleton.

WHAT: Build provider descriptors from settings and share one router
WHY: Centralize provider selection and reuse connection pools process-wide
HOW: Read PROVIDER_PRIORITY and keys from config, cache singleton, log selection
"""

from typing import TYPE_CHECKING, AsyncIterator

from ..utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from .router import GenerationRouter, ProviderDescriptor
    from .types import TokenChunk

# Singleton instance
_router_instance: "GenerationRouter | None" = None

KNOWN_PROVIDERS = ("ollama", "openai", "gemini", "anthropic")


def build_descriptors() -> list["ProviderDescriptor"]:
    """
    Build descriptors for every configured provider.

    The local daemon is registered when LOCAL_AI_ENABLED is set (its
    availability is probed per call); cloud providers only when their API
    key is set.

    Raises:
        ConfigurationError: If PROVIDER_PRIORITY names an unknown provider
    """
    # Import here to avoid circular dependencies
    from ..core.config import settings
    from .router import ProviderDescriptor

    descriptors = []
    for priority, name in enumerate(settings.get_provider_priority_list()):
        if name not in KNOWN_PROVIDERS:
            raise ConfigurationError(
                f"Unknown LLM provider in PROVIDER_PRIORITY: {name}",
                setting="PROVIDER_PRIORITY"
            )

        if name == "ollama":
            if not settings.LOCAL_AI_ENABLED:
                continue
            from .ollama import OllamaProvider
            descriptors.append(ProviderDescriptor(name, priority, OllamaProvider(), is_local=True))
        elif name == "openai":
            if not settings.OPENAI_API_KEY.strip():
                continue
            from .openai import OpenAIProvider
            descriptors.append(ProviderDescriptor(name, priority, OpenAIProvider()))
        elif name == "gemini":
            if not settings.GEMINI_API_KEY.strip():
                continue
            from .gemini import GeminiProvider
            descriptors.append(ProviderDescriptor(name, priority, GeminiProvider()))
        elif name == "anthropic":
            if not settings.ANTHROPIC_API_KEY.strip():
                continue
            from .anthropic import AnthropicProvider
            descriptors.append(ProviderDescriptor(name, priority, AnthropicProvider()))

    return descriptors


def get_router() -> "GenerationRouter":
    """
    Get the configured generation router singleton.

    Returns:
        GenerationRouter over every configured provider
    """
    global _router_instance

    if _router_instance is None:
        from .router import GenerationRouter
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        descriptors = build_descriptors()
        _router_instance = GenerationRouter(descriptors)
        logger.info(f"LLM providers configured: {[d.name for d in descriptors] or 'none'}")

    return _router_instance


def reset_router() -> None:
    """Reset the router singleton (useful for testing)."""
    global _router_instance
    _router_instance = None


def stream_generate(prompt: str, **options) -> AsyncIterator["TokenChunk"]:
    """
    Generate a streaming response with automatic fallback.

    Usage:
        async for chunk in stream_generate("Write a factorial function"):
            print(chunk.token, end="")
    """
    return get_router().generate(prompt, **options)


async def generate_complete(prompt: str, **options) -> str:
    """Generate a complete response (collects all tokens)."""
    return await get_router().generate_complete(prompt, **options)
