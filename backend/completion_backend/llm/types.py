"""
LLM provider types, dataclasses, and exceptions.

WHAT: Standard type definitions shared by adapters, router and engine
WHY: Ensure consistent contracts across all providers
HOW: Frozen dataclasses for requests/chunks/status, enums + exceptions for errors
"""

from dataclasses import dataclass
from enum import Enum

from ..utils.exceptions import InvalidRequestError


@dataclass(frozen=True)
class GenerationRequest:
    """
    A single generation against one provider.

    Immutable once constructed; a retry against another provider builds a
    fresh request instead of reusing this one.
    """
    prompt: str
    temperature: float
    max_tokens: int
    model: str | None = None
    stop: tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.prompt, str):
            raise InvalidRequestError("prompt must be a string", field="prompt")
        if not 0 <= self.temperature <= 2:
            raise InvalidRequestError(
                f"temperature must be within [0, 2], got {self.temperature}",
                field="temperature"
            )
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise InvalidRequestError(
                f"max_tokens must be a positive integer, got {self.max_tokens!r}",
                field="max_tokens"
            )


@dataclass(frozen=True)
class TokenChunk:
    """Non-empty text fragment from a streaming response."""
    token: str
    index: int
    provider: str = ""


@dataclass
class ProviderStatus:
    """Health status of an LLM provider."""
    name: str
    available: bool
    base_url: str
    priority: int = 0
    is_local: bool = False
    models: list[str] | None = None
    error: str | None = None


class ProviderErrorKind(str, Enum):
    AUTH = "AUTH"
    RATE_LIMIT = "RATE_LIMIT"
    UNAVAILABLE = "UNAVAILABLE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class RouterErrorKind(str, Enum):
    NO_BACKEND_AVAILABLE = "NO_BACKEND_AVAILABLE"


def classify_status(status_code: int) -> ProviderErrorKind:
    """Map a non-success HTTP status to a provider error kind."""
    if status_code in (401, 403):
        return ProviderErrorKind.AUTH
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMIT
    if status_code in (404, 408) or status_code >= 500:
        return ProviderErrorKind.UNAVAILABLE
    return ProviderErrorKind.MALFORMED_RESPONSE


class ProviderError(Exception):
    """A provider failed to produce (or finish) a stream."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        provider_name: str,
        message: str = "",
        http_status: int | None = None,
    ):
        self.kind = kind
        self.provider_name = provider_name
        self.http_status = http_status
        self.message = message or kind.value
        super().__init__(f"{provider_name}: {kind.value} - {self.message}")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "provider": self.provider_name,
            "http_status": self.http_status,
            "message": self.message,
        }


@dataclass
class ProviderAttempt:
    """Why one provider was skipped or failed during a generate call."""
    provider_name: str
    reason: str


class RouterError(Exception):
    """No provider could start a stream for this call."""

    def __init__(
        self,
        kind: RouterErrorKind,
        hint: str,
        attempts: list[ProviderAttempt] | None = None,
    ):
        self.kind = kind
        self.hint = hint
        self.attempts = attempts or []
        tried = ", ".join(f"{a.provider_name} ({a.reason})" for a in self.attempts) or "none configured"
        super().__init__(f"{kind.value}: {hint} [tried: {tried}]")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "hint": self.hint,
            "attempts": [
                {"provider": a.provider_name, "reason": a.reason} for a in self.attempts
            ],
        }

