"""
Autocomplete request/result types.

WHAT: Value types exchanged with the editor-integration layer
WHY: Requests are values, not handles; results encode every terminal state
HOW: Frozen dataclasses with construction-time validation
"""

from dataclasses import dataclass, field
from enum import Enum

from ..utils.exceptions import InvalidRequestError


class EngineState(str, Enum):
    START = "START"
    ASSEMBLING_CONTEXT = "ASSEMBLING_CONTEXT"
    GENERATING = "GENERATING"
    COMPLETED = "COMPLETED"
    TIMED_OUT = "TIMED_OUT"
    FAILED = "FAILED"


@dataclass(frozen=True)
class AutocompleteRequest:
    """Text around the cursor; prefix and suffix may be empty but never None."""
    prefix: str
    suffix: str
    file_path: str
    language: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None

    def __post_init__(self):
        if not isinstance(self.prefix, str):
            raise InvalidRequestError("prefix must be a string", field="prefix")
        if not isinstance(self.suffix, str):
            raise InvalidRequestError("suffix must be a string", field="suffix")
        if not isinstance(self.file_path, str):
            raise InvalidRequestError("file_path must be a string", field="file_path")
        if self.max_tokens is not None and (
            isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0
        ):
            raise InvalidRequestError(
                f"max_tokens must be a positive integer, got {self.max_tokens!r}",
                field="max_tokens"
            )
        if self.temperature is not None and not 0 <= self.temperature <= 2:
            raise InvalidRequestError(
                f"temperature must be within [0, 2], got {self.temperature}",
                field="temperature"
            )


@dataclass(frozen=True)
class ContextSymbol:
    """Ranked snippet produced by an external indexer."""
    name: str
    kind: str
    snippet: str
    score: float = 0.0


@dataclass
class CompletionResult:
    """
    Outcome of one get_completions() call.

    `completions` holds zero or one suggestion; empty means nothing usable
    was produced before the budget expired or every provider failed. The
    error (if any) is attached for logging, never raised.
    """
    completions: list[str]
    latency_ms: int
    context_used: bool
    state: EngineState = EngineState.COMPLETED
    error: Exception | None = field(default=None, repr=False)
    provider: str | None = None

    def error_payload(self) -> dict | None:
        if self.error is None:
            return None
        to_dict = getattr(self.error, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        return {"kind": type(self.error).__name__, "message": str(self.error)}
