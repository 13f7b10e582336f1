"""
Context assembly for autocomplete prompts.

WHAT: Build a bounded fill-in-the-middle prompt around the cursor
WHY: Relevant symbols improve completions, but assembly must never dominate
     the latency budget
HOW: Window prefix/suffix, ask the external indexer for top-K symbols under a
     deadline, render truncated snippets as comments above the prompt
"""

import asyncio
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from .fim import format_fim_prompt, line_comment
from .types import AutocompleteRequest, ContextSymbol
from ..utils.logger import get_logger

logger = get_logger(__name__)

CONTEXT_HEADER = "Context from codebase:"


class Indexer(Protocol):
    """External symbol indexer; results are ordered most relevant first."""

    async def search(self, file_path: str, cursor_context: str, k: int) -> Sequence[ContextSymbol]:
        ...


@dataclass
class AssembledContext:
    prompt: str
    context_used: bool
    symbols: list[ContextSymbol] = field(default_factory=list)


class ContextAssembler:
    """Builds the prompt for one autocomplete request."""

    def __init__(
        self,
        indexer: Indexer | None = None,
        *,
        max_context_symbols: int = 5,
        max_snippet_chars: int = 200,
        max_prefix_chars: int | None = None,
        max_suffix_chars: int | None = None,
        cursor_context_chars: int = 200,
    ):
        self.indexer = indexer
        self.max_context_symbols = max_context_symbols
        self.max_snippet_chars = max_snippet_chars
        self.max_prefix_chars = max_prefix_chars
        self.max_suffix_chars = max_suffix_chars
        self.cursor_context_chars = cursor_context_chars

    def window(self, request: AutocompleteRequest) -> tuple[str, str]:
        """Keep the text nearest the cursor: the prefix tail and the suffix head."""
        prefix, suffix = request.prefix, request.suffix
        if self.max_prefix_chars is not None and len(prefix) > self.max_prefix_chars:
            prefix = prefix[len(prefix) - self.max_prefix_chars:]
        if self.max_suffix_chars is not None:
            suffix = suffix[:self.max_suffix_chars]
        return prefix, suffix

    def render_symbols(self, symbols: list[ContextSymbol], language: str | None) -> str:
        marker = line_comment(language)
        lines = [f"{marker} {CONTEXT_HEADER}"]
        for symbol in symbols:
            lines.append(f"{marker} {symbol.name} ({symbol.kind})")
            snippet = symbol.snippet[:self.max_snippet_chars]
            for snippet_line in snippet.splitlines():
                if snippet_line.strip():
                    lines.append(f"{marker}   {snippet_line.rstrip()}")
        return "\n".join(lines) + "\n\n"

    async def assemble(
        self,
        request: AutocompleteRequest,
        *,
        budget_s: float | None = None,
    ) -> AssembledContext:
        """
        Assemble the prompt for a request.

        Args:
            request: Autocomplete request
            budget_s: Seconds the indexer lookup may take; None waits for it,
                zero or less skips it

        Returns:
            AssembledContext; context_used is True only when at least one
            symbol made it into the prompt
        """
        prefix, suffix = self.window(request)
        skeleton = format_fim_prompt(prefix, suffix)

        if self.indexer is None or self.max_context_symbols <= 0:
            return AssembledContext(prompt=skeleton, context_used=False)
        if budget_s is not None and budget_s <= 0:
            logger.debug("No budget left for context lookup")
            return AssembledContext(prompt=skeleton, context_used=False)

        try:
            lookup = self.indexer.search(
                request.file_path,
                prefix[-self.cursor_context_chars:],
                self.max_context_symbols
            )
            if budget_s is None:
                found = await lookup
            else:
                found = await asyncio.wait_for(lookup, timeout=budget_s)
        except asyncio.TimeoutError:
            logger.debug(f"Indexer lookup exceeded {budget_s * 1000:.0f}ms, continuing without context")
            return AssembledContext(prompt=skeleton, context_used=False)
        except Exception as e:
            # External collaborator: a broken indexer costs context, not the completion
            logger.warning(f"Indexer lookup failed: {e}")
            return AssembledContext(prompt=skeleton, context_used=False)

        symbols = list(found or [])[:self.max_context_symbols]
        if not symbols:
            return AssembledContext(prompt=skeleton, context_used=False)

        header = self.render_symbols(symbols, request.language)
        return AssembledContext(prompt=header + skeleton, context_used=True, symbols=symbols)
