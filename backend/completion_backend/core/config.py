"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Completion Backend"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Provider order: position in the list is the priority number (lower tried first)
    PROVIDER_PRIORITY: str = "ollama,openai,gemini,anthropic"

    # Local daemon (Ollama)
    LOCAL_AI_ENABLED: bool = True
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_DEFAULT_MODEL: str = "phi3:mini"
    LOCAL_PROBE_TIMEOUT_MS: int = 300

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_DEFAULT_MODEL: str = "gpt-4o-mini"

    # Google Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_DEFAULT_MODEL: str = "gemini-1.5-flash"

    # Anthropic
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com/v1"
    ANTHROPIC_DEFAULT_MODEL: str = "claude-3-5-haiku-latest"
    ANTHROPIC_VERSION: str = "2023-06-01"

    # Transport
    LLM_CONNECT_TIMEOUT: float = 5.0  # seconds
    LLM_READ_TIMEOUT: float = 60.0  # seconds
    LLM_MAX_CONNECTIONS: int = 20

    # Generation defaults
    LLM_DEFAULT_TEMPERATURE: float = 0.7
    LLM_DEFAULT_MAX_TOKENS: int = 2000

    # Autocomplete engine
    AUTOCOMPLETE_FAST_MODEL: str = "phi3:mini"
    AUTOCOMPLETE_TIMEOUT_MS: int = 80
    AUTOCOMPLETE_USE_INDEXER: bool = True
    AUTOCOMPLETE_MAX_CONTEXT_SYMBOLS: int = 5
    AUTOCOMPLETE_MAX_TOKENS: int = 20
    AUTOCOMPLETE_TEMPERATURE: float = 0.1
    AUTOCOMPLETE_MIN_GENERATION_MS: int = 20  # budget reserved for generation after context assembly
    AUTOCOMPLETE_MAX_SNIPPET_CHARS: int = 200
    AUTOCOMPLETE_MAX_PREFIX_CHARS: int = 500
    AUTOCOMPLETE_MAX_SUFFIX_CHARS: int = 100
    AUTOCOMPLETE_CACHE_TTL_MS: int = 5000  # 0 disables the cache

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("CORS_ORIGINS", "PROVIDER_PRIORITY", "LOG_MODULE_LEVELS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Accept comma-separated strings or lists for list-like settings."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_provider_priority_list(self) -> list[str]:
        """Get provider names in priority order (lower-cased)."""
        return [name.strip().lower() for name in self.PROVIDER_PRIORITY.split(",") if name.strip()]

    # Streaming / SSE
    SSE_PING_INTERVAL: int = 15  # seconds between keep-alive pings

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/completion.log"
    # Per-logger overrides, e.g. "completion_backend.llm=DEBUG,completion_backend.autocomplete=WARNING"
    LOG_MODULE_LEVELS: str = "httpx=WARNING,httpcore=WARNING"

    def get_log_module_levels(self) -> dict[str, str]:
        """Get per-logger level overrides as {logger name: level name}."""
        levels = {}
        for entry in self.LOG_MODULE_LEVELS.split(","):
            name, sep, level = entry.partition("=")
            if sep and name.strip() and level.strip():
                levels[name.strip()] = level.strip().upper()
        return levels

    class Config:
        # Look for .env in the repository root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton instance
settings = Settings()
