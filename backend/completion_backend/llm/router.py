"""
Generation router with availability-based fallback.

WHAT: Pick a provider per call and surface one canonical token stream
WHY: Which backend is reachable changes at runtime (daemon up/down, keys set)
HOW: Ordered descriptors, lazy per-call probes, sequential fallback that stops
     as soon as any text has reached the caller
"""

import asyncio
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator

from .cancellation import CancellationToken
from .provider import ProviderAdapter
from .types import (
    GenerationRequest,
    TokenChunk,
    ProviderStatus,
    ProviderError,
    ProviderAttempt,
    RouterError,
    RouterErrorKind,
)
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

NO_BACKEND_HINT = (
    "Start the local daemon (ollama serve) or configure an API key "
    "(OPENAI_API_KEY, GEMINI_API_KEY or ANTHROPIC_API_KEY)"
)


@dataclass(frozen=True)
class ProviderDescriptor:
    """A configured backend; lower priority numbers are tried first."""
    name: str
    priority: int
    adapter: ProviderAdapter
    is_local: bool = False

    async def is_available(self) -> bool:
        return await self.adapter.is_available()


class GenerationRouter:
    """
    Routes generation requests across providers.

    Local providers come before remote ones whatever their priority numbers;
    within each group the priority number decides. Nothing here is mutated
    per call, so concurrent generate() calls are independent.
    """

    def __init__(
        self,
        providers: list[ProviderDescriptor],
        *,
        default_temperature: float | None = None,
        default_max_tokens: int | None = None,
    ):
        self._providers = tuple(sorted(providers, key=lambda d: (not d.is_local, d.priority)))
        self.default_temperature = (
            settings.LLM_DEFAULT_TEMPERATURE if default_temperature is None else default_temperature
        )
        self.default_max_tokens = default_max_tokens or settings.LLM_DEFAULT_MAX_TOKENS

        if not self._providers:
            logger.error(f"No LLM provider configured. {NO_BACKEND_HINT}")
        else:
            order = ", ".join(f"{d.name}({d.priority})" for d in self._providers)
            logger.info(f"Generation router initialized (order: {order})")

    @property
    def providers(self) -> tuple[ProviderDescriptor, ...]:
        return self._providers

    def _base_request(
        self,
        prompt: str,
        model: str | None,
        temperature: float | None,
        max_tokens: int | None,
        stop: list[str] | tuple[str, ...] | None,
    ) -> GenerationRequest:
        return GenerationRequest(
            prompt=prompt,
            model=model,
            temperature=self.default_temperature if temperature is None else temperature,
            max_tokens=self.default_max_tokens if max_tokens is None else max_tokens,
            stop=tuple(stop or ()),
        )

    def _request_for(self, descriptor: ProviderDescriptor, base: GenerationRequest) -> GenerationRequest:
        # Model names are backend specific; only local daemons take the hint
        return GenerationRequest(
            prompt=base.prompt,
            model=base.model if descriptor.is_local else None,
            temperature=base.temperature,
            max_tokens=base.max_tokens,
            stop=base.stop,
        )

    def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | tuple[str, ...] | None = None,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[TokenChunk]:
        """
        Stream tokens from the first provider that can start a stream.

        The request is validated here, before any I/O, so malformed options
        raise InvalidRequestError immediately rather than on first iteration.

        Args:
            prompt: Prompt text
            model: Model hint (honoured by local providers)
            temperature: Sampling temperature in [0, 2]
            max_tokens: Maximum tokens to generate
            stop: Optional stop sequences
            cancel: Optional cancellation token propagated to the adapter

        Returns:
            Async iterator of TokenChunk

        Raises (during iteration):
            ProviderError: Provider failed after text was already delivered
            RouterError: No provider was available or all failed before output
        """
        base = self._base_request(prompt, model, temperature, max_tokens, stop)
        return self._generate(base, cancel)

    async def _generate(
        self,
        base: GenerationRequest,
        cancel: CancellationToken | None,
    ) -> AsyncIterator[TokenChunk]:
        attempts: list[ProviderAttempt] = []

        for descriptor in self._providers:
            if cancel is not None and cancel.cancelled:
                return

            if not await descriptor.is_available():
                logger.debug(f"Provider {descriptor.name} unavailable, skipping")
                attempts.append(ProviderAttempt(descriptor.name, "unavailable"))
                continue

            request = self._request_for(descriptor, base)
            emitted = 0
            try:
                # Closing this generator mid-stream must close the adapter's connection too
                async with aclosing(descriptor.adapter.stream(request, cancel)) as chunks:
                    async for chunk in chunks:
                        emitted += 1
                        yield chunk
                return

            except ProviderError as e:
                if emitted:
                    # Switching now would splice two different generations together
                    logger.error(f"Provider {descriptor.name} failed after {emitted} chunks: {e}")
                    raise
                logger.warning(f"Provider {descriptor.name} failed before output ({e.kind.value}), falling back")
                attempts.append(ProviderAttempt(descriptor.name, e.kind.value))

        if cancel is not None and cancel.cancelled:
            return

        raise RouterError(RouterErrorKind.NO_BACKEND_AVAILABLE, NO_BACKEND_HINT, attempts)

    async def generate_complete(self, prompt: str, **options) -> str:
        """Drain generate() and concatenate every chunk."""
        parts = []
        async for chunk in self.generate(prompt, **options):
            parts.append(chunk.token)
        return "".join(parts)

    async def probe_all(self) -> list[ProviderStatus]:
        """Ping every provider concurrently, in routing order."""
        statuses = await asyncio.gather(*(d.adapter.ping() for d in self._providers))
        for descriptor, status in zip(self._providers, statuses):
            status.priority = descriptor.priority
            status.is_local = descriptor.is_local
        return list(statuses)

    async def close(self) -> None:
        """Close every adapter's connection pool."""
        for descriptor in self._providers:
            await descriptor.adapter.close()
