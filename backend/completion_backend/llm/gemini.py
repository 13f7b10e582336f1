"""
Google Gemini provider implementation.

WHAT: Cloud LLM provider via the Gemini generateContent API
WHY: Second remote fallback with its own nested candidate schema
HOW: streamGenerateContent returns JSON documents (one per line, or a single
     document); text lives at candidates[0].content.parts[0].text
"""

import httpx

from .provider import HTTPStreamAdapter
from .streaming_handler import JsonLinesDecoder
from .types import GenerationRequest
from ..core.config import settings


class GeminiProvider(HTTPStreamAdapter):
    """Google Gemini provider."""

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        default_model: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url or settings.GEMINI_BASE_URL,
            default_model or settings.GEMINI_DEFAULT_MODEL,
            api_key=settings.GEMINI_API_KEY if api_key is None else api_key,
            client=client
        )

    def build_request(self, request: GenerationRequest) -> tuple[str, dict, dict]:
        generation_config = {
            "maxOutputTokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.stop:
            generation_config["stopSequences"] = list(request.stop)[:5]

        payload = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }
        url = f"{self.base_url}/models/{self.resolve_model(request)}:streamGenerateContent"
        return url, payload, {"x-goog-api-key": self.api_key}

    def new_decoder(self) -> JsonLinesDecoder:
        return JsonLinesDecoder()

    def extract(self, item: dict) -> tuple[str | None, bool]:
        candidates = item.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return None, False

        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        parts = parts or []
        text = parts[0].get("text") if parts and isinstance(parts[0], dict) else None
        # finishReason arrives on the last document together with its text
        return (text if isinstance(text, str) else None), False
