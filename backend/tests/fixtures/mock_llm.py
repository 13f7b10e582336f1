"""
Scripted provider adapters for deterministic testing.

WHAT: Fake adapters that stream canned tokens
WHY: Test router and engine without any HTTP backend
HOW: Implement the ProviderAdapter protocol with configurable failures and delays
"""

import asyncio
import itertools
from typing import AsyncIterator, Sequence

from completion_backend.autocomplete.types import ContextSymbol
from completion_backend.llm.cancellation import CancellationToken
from completion_backend.llm.router import ProviderDescriptor
from completion_backend.llm.types import (
    GenerationRequest,
    ProviderError,
    ProviderErrorKind,
    ProviderStatus,
    TokenChunk,
)


class ScriptedAdapter:
    """
    Adapter that replays a token script.

    Can be configured to be unavailable, to fail before or after emitting
    chunks, to sleep between chunks, or to never finish.
    """

    def __init__(
        self,
        name: str,
        tokens: Sequence[str] = ("ok",),
        *,
        is_local: bool = False,
        available: bool = True,
        delay: float = 0.0,
        fail_before: ProviderErrorKind | None = None,
        fail_after: int | None = None,
        endless: bool = False,
    ):
        self.name = name
        self.tokens = list(tokens)
        self.is_local = is_local
        self.base_url = f"http://{name}.mock"
        self.available = available
        self.delay = delay
        self.fail_before = fail_before
        self.fail_after = fail_after
        self.endless = endless

        self.probe_count = 0
        self.requests: list[GenerationRequest] = []
        self.emitted = 0
        self.closed = False
        self.client_closed = False

    @property
    def stream_count(self) -> int:
        return len(self.requests)

    async def ping(self) -> ProviderStatus:
        return ProviderStatus(
            name=self.name,
            available=self.available,
            base_url=self.base_url,
            is_local=self.is_local,
            error=None if self.available else "Mock unavailable"
        )

    async def is_available(self) -> bool:
        self.probe_count += 1
        return self.available

    async def stream(
        self,
        request: GenerationRequest,
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[TokenChunk]:
        self.requests.append(request)
        try:
            if self.fail_before is not None:
                raise ProviderError(self.fail_before, self.name, message="scripted failure")

            script = itertools.cycle(self.tokens) if self.endless else iter(self.tokens)
            for index, token in enumerate(script):
                if cancel is not None and cancel.cancelled:
                    return
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield TokenChunk(token=token, index=index, provider=self.name)
                self.emitted += 1
                if self.fail_after is not None and self.emitted >= self.fail_after:
                    raise ProviderError(
                        ProviderErrorKind.UNAVAILABLE, self.name, message="scripted mid-stream failure"
                    )
        finally:
            self.closed = True

    async def close(self) -> None:
        self.client_closed = True


def descriptor(adapter: ScriptedAdapter, priority: int = 0) -> ProviderDescriptor:
    return ProviderDescriptor(adapter.name, priority, adapter, is_local=adapter.is_local)


class RecordingIndexer:
    """Indexer returning fixed symbols, optionally after a delay."""

    def __init__(self, symbols: Sequence[ContextSymbol] = (), *, delay: float = 0.0, error: Exception | None = None):
        self.symbols = list(symbols)
        self.delay = delay
        self.error = error
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, file_path: str, cursor_context: str, k: int) -> list[ContextSymbol]:
        self.calls.append((file_path, cursor_context, k))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.symbols[:k]
