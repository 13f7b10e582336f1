"""
Free-form generation endpoints.

WHAT: Token streaming over Server-Sent Events, plus a collected variant
WHY: Chat-style clients want tokens as they arrive
HOW: EventSourceResponse wrapping the router's token stream; a client
     disconnect cancels the provider connection
"""

import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from ....core.config import settings
from ....llm.cancellation import CancellationToken
from ....llm.provider_factory import get_router
from ....llm.router import GenerationRouter
from ....llm.types import ProviderError, RouterError, TokenChunk
from ....models.api_schemas import GenerateRequestBody, GenerateCompleteResponse
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def token_event_generator(
    stream: AsyncIterator[TokenChunk],
    cancel: CancellationToken,
) -> AsyncIterator[dict]:
    """
    Generate SSE events for one generation.

    Yields:
        `token` events, then `done`, or a single `error` event
    """
    emitted = 0
    try:
        async for chunk in stream:
            emitted += 1
            yield {
                "event": "token",
                "data": json.dumps({
                    "token": chunk.token,
                    "index": chunk.index,
                    "provider": chunk.provider
                })
            }

        yield {"event": "done", "data": json.dumps({"chunks": emitted})}

    except (RouterError, ProviderError) as e:
        logger.error(f"Generation stream failed after {emitted} chunks: {e}")
        yield {"event": "error", "data": json.dumps(e.to_dict())}

    finally:
        # Reached on normal end and when sse-starlette cancels us on disconnect
        cancel.cancel("stream closed")
        await stream.aclose()
        logger.debug(f"Generation stream ended ({emitted} chunks)")


@router.post("/generate")
async def generate(
    body: GenerateRequestBody,
    generation_router: GenerationRouter = Depends(get_router),
):
    """
    Stream generated tokens via SSE.

    Malformed options are rejected with 400 before any provider is contacted.
    """
    cancel = CancellationToken()
    stream = generation_router.generate(body.prompt, cancel=cancel, **body.to_options())
    return EventSourceResponse(
        token_event_generator(stream, cancel),
        ping=settings.SSE_PING_INTERVAL,
    )


@router.post("/generate/complete", response_model=GenerateCompleteResponse)
async def generate_complete(
    body: GenerateRequestBody,
    generation_router: GenerationRouter = Depends(get_router),
):
    """Generate and return the whole text; RouterError maps to 503."""
    text = await generation_router.generate_complete(body.prompt, **body.to_options())
    return GenerateCompleteResponse(text=text)
