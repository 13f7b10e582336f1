"""
LLM provider protocol and shared HTTP streaming base.

WHAT: Abstract interface for provider adapters plus the transport they share
WHY: Decouple the router from each provider's wire format
HOW: Protocol for the adapter contract; HTTPStreamAdapter owns one connection
     per call, status classification and cancellation, while subclasses own
     the request shape and the response-text path
"""

from contextlib import aclosing
from typing import Protocol, AsyncIterator, Any
import json

import httpx

from .types import (
    GenerationRequest,
    TokenChunk,
    ProviderStatus,
    ProviderError,
    ProviderErrorKind,
    classify_status,
)
from .cancellation import CancellationToken, iterate_until_cancelled
from .streaming_handler import JsonLinesDecoder, SseDecoder
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ProviderAdapter(Protocol):
    """Protocol defining the interface all provider adapters must implement."""

    name: str
    is_local: bool
    base_url: str

    async def ping(self) -> ProviderStatus:
        """Check provider health and availability."""
        ...

    async def is_available(self) -> bool:
        """Cheap liveness probe; not a guarantee the next stream succeeds."""
        ...

    def stream(
        self,
        request: GenerationRequest,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[TokenChunk]:
        """Stream non-empty text chunks; raises ProviderError before the first chunk on a bad status."""
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...


def build_client(**kwargs) -> httpx.AsyncClient:
    """Create the pooled async client used by one adapter."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.LLM_CONNECT_TIMEOUT, read=settings.LLM_READ_TIMEOUT),
        limits=httpx.Limits(
            max_keepalive_connections=10,
            max_connections=settings.LLM_MAX_CONNECTIONS
        ),
        **kwargs
    )


class HTTPStreamAdapter:
    """
    Base class for adapters that stream over a single HTTP POST.

    Subclasses implement build_request(), new_decoder() and extract();
    everything about the connection lifecycle lives here.
    """

    name = "http"
    is_local = False

    def __init__(
        self,
        base_url: str,
        default_model: str,
        *,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.api_key = api_key
        self._owns_client = client is None
        self.client = client or build_client()

    # Provider-specific hooks

    def build_request(self, request: GenerationRequest) -> tuple[str, dict, dict]:
        """Return (url, json_payload, headers) for a streaming call."""
        raise NotImplementedError

    def new_decoder(self) -> JsonLinesDecoder | SseDecoder:
        raise NotImplementedError

    def extract(self, item: Any) -> tuple[str | None, bool]:
        """Return (text, done) for one decoded fragment."""
        raise NotImplementedError

    def resolve_model(self, request: GenerationRequest) -> str:
        return request.model or self.default_model

    # Availability

    async def ping(self) -> ProviderStatus:
        """
        Report availability for a cloud provider.

        Cloud endpoints are not probed over the network on every call; a
        configured API key is the availability criterion.
        """
        configured = bool(self.api_key and self.api_key.strip())
        return ProviderStatus(
            name=self.name,
            available=configured,
            base_url=self.base_url,
            is_local=self.is_local,
            error=None if configured else "API key not configured"
        )

    async def is_available(self) -> bool:
        status = await self.ping()
        return status.available

    # Streaming

    def _error_from_response(self, response: httpx.Response, body: bytes) -> ProviderError:
        message = f"HTTP {response.status_code}"
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = f"{message}: {error['message']}"
            elif isinstance(error, str):
                message = f"{message}: {error}"
        return ProviderError(
            classify_status(response.status_code),
            self.name,
            message=message,
            http_status=response.status_code
        )

    def _drain(self, items: list, state: dict) -> list[str]:
        tokens = []
        for item in items:
            text, done = self.extract(item)
            if text:
                tokens.append(text)
            if done:
                state["done"] = True
                break
        return tokens

    async def stream(
        self,
        request: GenerationRequest,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[TokenChunk]:
        """
        Stream response tokens as they're generated.

        Args:
            request: Immutable generation request
            cancel: Optional token; when it fires the connection is closed and
                no further network input is read

        Yields:
            TokenChunk for each non-empty text fragment, in network order

        Raises:
            ProviderError: Non-success status (before any chunk) or transport failure
        """
        if cancel is not None and cancel.cancelled:
            return

        url, payload, headers = self.build_request(request)
        decoder = self.new_decoder()
        state = {"done": False}
        index = 0

        try:
            async with self.client.stream("POST", url, json=payload, headers=headers) as response:
                if not response.is_success:
                    body = await response.aread()
                    error = self._error_from_response(response, body)
                    logger.warning(f"{self.name} rejected stream request: {error}")
                    raise error

                async with aclosing(iterate_until_cancelled(response.aiter_text(), cancel)) as texts:
                    async for text in texts:
                        for token in self._drain(decoder.feed(text), state):
                            yield TokenChunk(token=token, index=index, provider=self.name)
                            index += 1
                        if state["done"]:
                            break

                if not state["done"] and not (cancel is not None and cancel.cancelled):
                    for token in self._drain(decoder.close(), state):
                        yield TokenChunk(token=token, index=index, provider=self.name)
                        index += 1

            if cancel is not None and cancel.cancelled:
                logger.debug(f"{self.name} stream cancelled after {index} chunks ({cancel.reason})")
            else:
                logger.debug(f"{self.name} stream completed ({index} chunks, {decoder.dropped} dropped fragments)")

        except httpx.TimeoutException as e:
            logger.error(f"{self.name} streaming timeout")
            raise ProviderError(
                ProviderErrorKind.UNAVAILABLE, self.name, message="Streaming request timed out"
            ) from e

        except httpx.ConnectError as e:
            logger.error(f"{self.name} connection refused during streaming")
            raise ProviderError(
                ProviderErrorKind.UNAVAILABLE, self.name, message=f"{self.name} is not reachable"
            ) from e

        except httpx.TransportError as e:
            logger.error(f"{self.name} transport error during streaming: {e}")
            raise ProviderError(
                ProviderErrorKind.UNAVAILABLE, self.name, message=f"Transport error: {e}"
            ) from e

        except httpx.DecodingError as e:
            logger.error(f"{self.name} response body could not be decoded: {e}")
            raise ProviderError(
                ProviderErrorKind.MALFORMED_RESPONSE, self.name, message=f"Undecodable response body: {e}"
            ) from e

        except httpx.RequestError as e:
            logger.error(f"{self.name} request failed during streaming: {e}")
            raise ProviderError(
                ProviderErrorKind.UNAVAILABLE, self.name, message=f"Request failed: {e}"
            ) from e

    async def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self.client.aclose()
