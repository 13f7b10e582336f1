"""
Cooperative cancellation for provider streams.

WHAT: Explicit cancellation signal threaded from the caller down to adapters
WHY: Connection teardown must be observable instead of depending on GC timing
HOW: asyncio.Event-backed token; network reads race against the token
"""

import asyncio
from contextlib import suppress
from typing import AsyncIterator, TypeVar

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal owned by a single generate() or get_completions() call."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


async def iterate_until_cancelled(
    source: AsyncIterator[T],
    token: CancellationToken | None,
) -> AsyncIterator[T]:
    """
    Re-yield items from source until it ends or the token fires.

    Each pending read races the token, so a read blocked on the network is
    abandoned as soon as cancellation is requested. Once cancelled, no
    further item is pulled from source.
    """
    if token is None:
        async for item in source:
            yield item
        return

    if token.cancelled:
        return

    cancel_wait = asyncio.ensure_future(token.wait())
    next_item: asyncio.Future | None = None
    try:
        while True:
            next_item = asyncio.ensure_future(source.__anext__())
            done, _ = await asyncio.wait(
                {next_item, cancel_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if next_item not in done:
                return
            try:
                item = next_item.result()
            except StopAsyncIteration:
                return
            next_item = None
            yield item
            if token.cancelled:
                return
    finally:
        cancel_wait.cancel()
        if next_item is not None and not next_item.done():
            next_item.cancel()
            with suppress(asyncio.CancelledError, StopAsyncIteration):
                await next_item
