"""
OpenAI provider implementation.

WHAT: Cloud LLM provider via the OpenAI chat-completions API
WHY: Remote fallback when the local daemon is down
HOW: Bearer-token auth, SSE streaming of choices[0].delta.content
"""

import httpx

from .provider import HTTPStreamAdapter
from .streaming_handler import SseDecoder, SseEvent
from .types import GenerationRequest
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIProvider(HTTPStreamAdapter):
    """OpenAI chat-completions provider."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        default_model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url or settings.OPENAI_BASE_URL,
            default_model or settings.OPENAI_DEFAULT_MODEL,
            api_key=settings.OPENAI_API_KEY if api_key is None else api_key,
            client=client
        )
        logger.info(
            f"OpenAI provider initialized (model: {self.default_model}, "
            f"API key: {'*' * 10 + self.api_key[-4:] if len(self.api_key) > 4 else '***'})"
        )

    def build_request(self, request: GenerationRequest) -> tuple[str, dict, dict]:
        payload = {
            "model": self.resolve_model(request),
            "messages": [{"role": "user", "content": request.prompt}],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": True,
        }
        if request.stop:
            # The API accepts at most four stop sequences
            payload["stop"] = list(request.stop)[:4]

        headers = {"Authorization": f"Bearer {self.api_key}"}
        return f"{self.base_url}/chat/completions", payload, headers

    def new_decoder(self) -> SseDecoder:
        return SseDecoder()

    def extract(self, item: SseEvent) -> tuple[str | None, bool]:
        if item.is_done:
            return None, True

        choices = item.payload.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None, False

        delta = choices[0].get("delta") or {}
        text = delta.get("content") if isinstance(delta, dict) else None
        return (text if isinstance(text, str) else None), bool(choices[0].get("finish_reason"))
