"""
Short-lived cache for autocomplete suggestions.

Rapid keystrokes often re-request the same cursor context; a hit skips
generation entirely.
"""

from dataclasses import dataclass
from hashlib import md5
import time

from .types import AutocompleteRequest

KEY_PREFIX_CHARS = 50
KEY_SUFFIX_CHARS = 50


@dataclass
class CachedCompletion:
    """A cached completion."""
    completion: str
    timestamp: float
    hits: int = 0


class CompletionCache:
    """
    TTL cache keyed by file path and the text nearest the cursor.

    Only whole completions are stored; partial (timed-out) text is not.
    """

    def __init__(self, ttl_ms: int = 5000, max_size: int = 256):
        self.ttl = ttl_ms / 1000.0
        self.max_size = max_size
        self._cache: dict[str, CachedCompletion] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def make_key(self, request: AutocompleteRequest) -> str:
        # Explicit overrides change the generation, so they are part of the key
        context = "\x00".join((
            request.prefix[-KEY_PREFIX_CHARS:],
            request.suffix[:KEY_SUFFIX_CHARS],
            request.language or "",
            repr(request.max_tokens),
            repr(request.temperature),
        ))
        context_hash = md5(context.encode()).hexdigest()[:16]
        return f"{request.file_path}:{context_hash}"

    def get(self, request: AutocompleteRequest) -> str | None:
        if not self.enabled:
            return None

        key = self.make_key(request)
        cached = self._cache.get(key)
        if cached is None:
            return None
        if time.monotonic() - cached.timestamp > self.ttl:
            del self._cache[key]
            return None

        cached.hits += 1
        return cached.completion

    def put(self, request: AutocompleteRequest, completion: str) -> None:
        if not self.enabled or not completion:
            return

        if len(self._cache) >= self.max_size:
            oldest = min(self._cache, key=lambda k: self._cache[k].timestamp)
            del self._cache[oldest]

        self._cache[self.make_key(request)] = CachedCompletion(
            completion=completion,
            timestamp=time.monotonic()
        )

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
