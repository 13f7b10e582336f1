"""
Autocomplete endpoints.

WHAT: Inline suggestion for the text around the cursor
WHY: Editor plugins call this on every pause in typing
HOW: Validate the body, run the engine, encode the terminal state in the response
"""

from fastapi import APIRouter, Depends

from ....autocomplete.engine import AutocompleteEngine, get_engine
from ....autocomplete.types import AutocompleteRequest
from ....models.api_schemas import AutocompleteRequestBody, CompletionResponse

router = APIRouter()


@router.post("/autocomplete", response_model=CompletionResponse)
async def autocomplete(
    body: AutocompleteRequestBody,
    engine: AutocompleteEngine = Depends(get_engine),
):
    """
    Get an inline completion.

    Timeouts and missing backends are result states, never error statuses.
    """
    request = AutocompleteRequest(**body.model_dump())
    result = await engine.get_completions(request)
    return CompletionResponse(
        completions=result.completions,
        latency_ms=result.latency_ms,
        context_used=result.context_used,
        state=result.state.value,
        provider=result.provider,
        error=result.error_payload(),
    )


@router.get("/autocomplete/stats")
async def autocomplete_stats(engine: AutocompleteEngine = Depends(get_engine)):
    return engine.get_stats()


@router.delete("/autocomplete/cache")
async def clear_autocomplete_cache(engine: AutocompleteEngine = Depends(get_engine)):
    engine.clear_cache()
    return {"cleared": True}
