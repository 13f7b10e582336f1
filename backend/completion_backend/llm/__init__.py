"""LLM provider layer."""

from .types import (
    GenerationRequest,
    TokenChunk,
    ProviderStatus,
    ProviderError,
    ProviderErrorKind,
    RouterError,
    RouterErrorKind,
)
from .cancellation import CancellationToken
from .provider import ProviderAdapter
from .router import GenerationRouter, ProviderDescriptor
from .provider_factory import get_router, reset_router, stream_generate, generate_complete

__all__ = [
    "GenerationRequest",
    "TokenChunk",
    "ProviderStatus",
    "ProviderError",
    "ProviderErrorKind",
    "RouterError",
    "RouterErrorKind",
    "CancellationToken",
    "ProviderAdapter",
    "GenerationRouter",
    "ProviderDescriptor",
    "get_router",
    "reset_router",
    "stream_generate",
    "generate_complete",
]
