"""Latency-budgeted inline autocomplete."""

from .types import AutocompleteRequest, CompletionResult, ContextSymbol, EngineState
from .context import ContextAssembler, Indexer
from .engine import AutocompleteEngine, AutocompleteOptions, get_engine, reset_engine

__all__ = [
    "AutocompleteRequest",
    "CompletionResult",
    "ContextSymbol",
    "EngineState",
    "ContextAssembler",
    "Indexer",
    "AutocompleteEngine",
    "AutocompleteOptions",
    "get_engine",
    "reset_engine",
]
