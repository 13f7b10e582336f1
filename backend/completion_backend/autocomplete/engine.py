"""
Latency-budgeted autocomplete engine.

WHAT: Produce one inline suggestion within a hard wall-clock budget
WHY: Suggestions that arrive after the user kept typing are worthless
HOW: One deadline per call covering context assembly and generation; on
     expiry the provider stream is cancelled and partial text is returned

State machine per call:
    START -> ASSEMBLING_CONTEXT -> GENERATING -> COMPLETED | TIMED_OUT | FAILED
"""

import asyncio
from dataclasses import dataclass, fields

from .cache import CompletionCache
from .context import ContextAssembler, Indexer
from .fim import FIM_STOP_SEQUENCES, extract_fim_completion
from .types import AutocompleteRequest, CompletionResult, EngineState
from ..core.config import settings
from ..llm.cancellation import CancellationToken
from ..llm.router import GenerationRouter
from ..llm.types import ProviderError, RouterError
from ..utils.exceptions import ConfigurationError, InvalidRequestError
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AutocompleteOptions:
    """Engine configuration; read-only and shared by every call."""
    fast_model: str = "phi3:mini"
    timeout_ms: int = 80
    use_indexer: bool = True
    max_context_symbols: int = 5
    max_tokens: int = 20
    temperature: float = 0.1
    min_generation_ms: int = 20
    max_snippet_chars: int = 200
    max_prefix_chars: int | None = 500
    max_suffix_chars: int | None = 100
    cache_ttl_ms: int = 5000

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be > 0, got {self.timeout_ms}", setting="timeout_ms")
        if self.max_context_symbols < 0:
            raise ConfigurationError(
                f"max_context_symbols must be >= 0, got {self.max_context_symbols}",
                setting="max_context_symbols"
            )
        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be > 0, got {self.max_tokens}", setting="max_tokens")
        if not 0 <= self.temperature <= 2:
            raise ConfigurationError(
                f"temperature must be within [0, 2], got {self.temperature}", setting="temperature"
            )
        if self.min_generation_ms < 0:
            raise ConfigurationError(
                f"min_generation_ms must be >= 0, got {self.min_generation_ms}", setting="min_generation_ms"
            )
        if self.cache_ttl_ms < 0:
            raise ConfigurationError(f"cache_ttl_ms must be >= 0, got {self.cache_ttl_ms}", setting="cache_ttl_ms")
        if not self.fast_model:
            raise ConfigurationError("fast_model must be set", setting="fast_model")

    @classmethod
    def from_settings(cls, **overrides) -> "AutocompleteOptions":
        unknown = set(overrides) - {f.name for f in fields(cls)}
        if unknown:
            raise ConfigurationError(f"Unknown autocomplete options: {sorted(unknown)}")

        values = {
            "fast_model": settings.AUTOCOMPLETE_FAST_MODEL,
            "timeout_ms": settings.AUTOCOMPLETE_TIMEOUT_MS,
            "use_indexer": settings.AUTOCOMPLETE_USE_INDEXER,
            "max_context_symbols": settings.AUTOCOMPLETE_MAX_CONTEXT_SYMBOLS,
            "max_tokens": settings.AUTOCOMPLETE_MAX_TOKENS,
            "temperature": settings.AUTOCOMPLETE_TEMPERATURE,
            "min_generation_ms": settings.AUTOCOMPLETE_MIN_GENERATION_MS,
            "max_snippet_chars": settings.AUTOCOMPLETE_MAX_SNIPPET_CHARS,
            "max_prefix_chars": settings.AUTOCOMPLETE_MAX_PREFIX_CHARS,
            "max_suffix_chars": settings.AUTOCOMPLETE_MAX_SUFFIX_CHARS,
            "cache_ttl_ms": settings.AUTOCOMPLETE_CACHE_TTL_MS,
        }
        values.update(overrides)
        return cls(**values)


class AutocompleteEngine:
    """
    Orchestrates context assembly and generation under one deadline.

    Concurrent get_completions() calls are independent: each owns its timer,
    cancellation token, provider connection and accumulation buffer.
    """

    def __init__(
        self,
        router: GenerationRouter,
        options: AutocompleteOptions | None = None,
        indexer: Indexer | None = None,
    ):
        self.router = router
        self.options = options or AutocompleteOptions.from_settings()
        self.assembler = ContextAssembler(
            max_context_symbols=self.options.max_context_symbols,
            max_snippet_chars=self.options.max_snippet_chars,
            max_prefix_chars=self.options.max_prefix_chars,
            max_suffix_chars=self.options.max_suffix_chars,
        )
        self.cache = CompletionCache(ttl_ms=self.options.cache_ttl_ms)
        self._calls = 0
        self._total_latency_ms = 0
        self.set_indexer(indexer)

    def set_indexer(self, indexer: Indexer | None) -> None:
        """Attach an indexer; ignored while use_indexer is off."""
        self.indexer = indexer
        self.assembler.indexer = indexer if self.options.use_indexer else None

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_stats(self) -> dict:
        return {
            "cache_size": len(self.cache),
            "calls": self._calls,
            "avg_latency_ms": (self._total_latency_ms / self._calls) if self._calls else None,
        }

    def _finish(
        self,
        started: float,
        text: str,
        context_used: bool,
        state: EngineState,
        error: Exception | None = None,
        provider: str | None = None,
    ) -> CompletionResult:
        latency_ms = max(0, round((asyncio.get_running_loop().time() - started) * 1000))
        self._calls += 1
        self._total_latency_ms += latency_ms

        if state is EngineState.FAILED:
            logger.warning(f"Autocomplete failed after {latency_ms}ms: {error}")
        else:
            logger.debug(f"Autocomplete {state.value} in {latency_ms}ms ({len(text)} chars, provider={provider})")

        return CompletionResult(
            completions=[text] if text else [],
            latency_ms=latency_ms,
            context_used=context_used,
            state=state,
            error=error,
            provider=provider,
        )

    async def get_completions(self, request: AutocompleteRequest) -> CompletionResult:
        """
        Get an autocomplete suggestion for the text around the cursor.

        Never raises for timeouts or missing/failed backends; those are
        encoded in the result state. Malformed requests raise before any I/O.

        Args:
            request: Autocomplete request (treated as an immutable value)

        Returns:
            CompletionResult with at most one completion
        """
        if not isinstance(request, AutocompleteRequest):
            raise InvalidRequestError(f"Expected AutocompleteRequest, got {type(request).__name__}")

        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.options.timeout_ms / 1000.0

        cached = self.cache.get(request)
        if cached is not None:
            return self._finish(started, cached, False, EngineState.COMPLETED, provider="cache")

        # ASSEMBLING_CONTEXT: leave at least min_generation_ms for generation
        context_budget = deadline - self.options.min_generation_ms / 1000.0 - loop.time()
        context = await self.assembler.assemble(request, budget_s=context_budget)

        # GENERATING
        state = EngineState.GENERATING
        cancel = CancellationToken()
        parts: list[str] = []
        provider = None
        error: Exception | None = None

        stream = self.router.generate(
            context.prompt,
            model=self.options.fast_model,
            temperature=self.options.temperature if request.temperature is None else request.temperature,
            max_tokens=request.max_tokens or self.options.max_tokens,
            stop=FIM_STOP_SEQUENCES,
            cancel=cancel,
        )
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    state = EngineState.TIMED_OUT
                    break
                try:
                    chunk = await asyncio.wait_for(stream.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    state = EngineState.COMPLETED
                    break
                except asyncio.TimeoutError:
                    state = EngineState.TIMED_OUT
                    break
                parts.append(chunk.token)
                provider = chunk.provider

        except (RouterError, ProviderError) as e:
            state = EngineState.FAILED
            error = e

        finally:
            cancel.cancel("autocomplete budget expired" if state is EngineState.TIMED_OUT else "call finished")
            await stream.aclose()

        if state is EngineState.FAILED:
            return self._finish(started, "", context.context_used, state, error=error, provider=provider)

        text = extract_fim_completion("".join(parts))
        if state is EngineState.COMPLETED:
            self.cache.put(request, text)
        return self._finish(started, text, context.context_used, state, provider=provider)


# Singleton instance
_engine_instance: AutocompleteEngine | None = None


def get_engine() -> AutocompleteEngine:
    """Get the process-wide engine over the shared generation router."""
    global _engine_instance

    if _engine_instance is None:
        from ..llm.provider_factory import get_router

        _engine_instance = AutocompleteEngine(get_router())
        logger.info(
            f"Autocomplete engine ready (model={_engine_instance.options.fast_model}, "
            f"timeout={_engine_instance.options.timeout_ms}ms)"
        )

    return _engine_instance


def reset_engine() -> None:
    """Reset the engine singleton (useful for testing)."""
    global _engine_instance
    _engine_instance = None
