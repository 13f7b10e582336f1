"""
Ollama provider implementation.

WHAT: Local LLM inference via the Ollama daemon with streaming support
WHY: Local inference has no network latency or cost and keeps code private
HOW: HTTPX client, NDJSON parsing of /api/generate, /api/tags liveness probe
"""

import httpx

from .provider import HTTPStreamAdapter
from .streaming_handler import JsonLinesDecoder
from .types import GenerationRequest, ProviderStatus
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class OllamaProvider(HTTPStreamAdapter):
    """Ollama local daemon provider."""

    name = "ollama"
    is_local = True

    def __init__(
        self,
        base_url: str | None = None,
        default_model: str | None = None,
        *,
        probe_timeout_ms: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize Ollama provider with httpx client."""
        super().__init__(
            base_url or settings.OLLAMA_BASE_URL,
            default_model or settings.OLLAMA_DEFAULT_MODEL,
            client=client
        )
        self.probe_timeout = (probe_timeout_ms or settings.LOCAL_PROBE_TIMEOUT_MS) / 1000.0

    async def ping(self) -> ProviderStatus:
        """
        Check Ollama availability.

        Any failure (connection refused, timeout, non-2xx) means unavailable;
        it is never raised as an error.

        Returns:
            ProviderStatus with availability and pulled model list
        """
        try:
            response = await self.client.get(
                f"{self.base_url}/api/tags",
                timeout=self.probe_timeout
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict) or not isinstance(data.get("models", []), list):
                # Something else is listening on the port
                raise ValueError(f"Unexpected /api/tags payload: {type(data).__name__}")

            models = [m.get("name") for m in data.get("models", []) if isinstance(m, dict)]

            return ProviderStatus(
                name=self.name,
                available=True,
                base_url=self.base_url,
                is_local=True,
                models=models if models else None
            )
        except httpx.TimeoutException:
            logger.debug("Ollama probe timed out")
            return ProviderStatus(
                name=self.name,
                available=False,
                base_url=self.base_url,
                is_local=True,
                error="Connection timeout"
            )
        except httpx.ConnectError:
            logger.debug("Ollama not reachable")
            return ProviderStatus(
                name=self.name,
                available=False,
                base_url=self.base_url,
                is_local=True,
                error="Connection refused - is Ollama running? (ollama serve)"
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama probe failed: {e}")
            return ProviderStatus(
                name=self.name,
                available=False,
                base_url=self.base_url,
                is_local=True,
                error=str(e)
            )

    def build_request(self, request: GenerationRequest) -> tuple[str, dict, dict]:
        options = {
            "num_predict": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.stop:
            options["stop"] = list(request.stop)

        payload = {
            "model": self.resolve_model(request),
            "prompt": request.prompt,
            "stream": True,
            "options": options,
        }
        return f"{self.base_url}/api/generate", payload, {}

    def new_decoder(self) -> JsonLinesDecoder:
        return JsonLinesDecoder()

    def extract(self, item: dict) -> tuple[str | None, bool]:
        text = item.get("response")
        return (text if isinstance(text, str) else None), bool(item.get("done"))
