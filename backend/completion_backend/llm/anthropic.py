"""
Anthropic provider implementation.

WHAT: Cloud LLM provider via the Anthropic messages API
WHY: Last remote fallback in the default priority order
HOW: x-api-key auth, SSE events; text arrives in content_block_delta events
"""

import httpx

from .provider import HTTPStreamAdapter
from .streaming_handler import SseDecoder, SseEvent
from .types import GenerationRequest, ProviderError, ProviderErrorKind
from ..core.config import settings


class AnthropicProvider(HTTPStreamAdapter):
    """Anthropic messages provider."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        default_model: str | None = None,
        api_version: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url or settings.ANTHROPIC_BASE_URL,
            default_model or settings.ANTHROPIC_DEFAULT_MODEL,
            api_key=settings.ANTHROPIC_API_KEY if api_key is None else api_key,
            client=client
        )
        self.api_version = api_version or settings.ANTHROPIC_VERSION

    def build_request(self, request: GenerationRequest) -> tuple[str, dict, dict]:
        payload = {
            "model": self.resolve_model(request),
            "messages": [{"role": "user", "content": request.prompt}],
            "max_tokens": request.max_tokens,
            "temperature": min(request.temperature, 1.0),  # API range is [0, 1]
            "stream": True,
        }
        if request.stop:
            # Whitespace-only stop sequences are rejected by the API
            stops = [s for s in request.stop if s.strip()]
            if stops:
                payload["stop_sequences"] = stops

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
        }
        return f"{self.base_url}/messages", payload, headers

    def new_decoder(self) -> SseDecoder:
        return SseDecoder()

    def extract(self, item: SseEvent) -> tuple[str | None, bool]:
        if item.is_done:
            return None, True

        event_type = item.payload.get("type") or item.event
        if event_type == "content_block_delta":
            delta = item.payload.get("delta") or {}
            text = delta.get("text") if isinstance(delta, dict) else None
            return (text if isinstance(text, str) else None), False
        if event_type == "message_stop":
            return None, True
        if event_type == "error":
            error = item.payload.get("error") or {}
            kind = ProviderErrorKind.UNAVAILABLE
            if isinstance(error, dict) and error.get("type") == "rate_limit_error":
                kind = ProviderErrorKind.RATE_LIMIT
            message = error.get("message", "stream error") if isinstance(error, dict) else str(error)
            raise ProviderError(kind, self.name, message=message)
        return None, False
