"""
Pydantic API schemas for the HTTP surface.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization for editor clients
HOW: Pydantic v2 models with constraints mirroring the domain types
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ========== Autocomplete ==========

class AutocompleteRequestBody(BaseModel):
    """Text around the cursor."""
    prefix: str = Field(..., description="Text before the cursor")
    suffix: str = Field(default="", description="Text after the cursor")
    file_path: str = Field(..., description="Path of the file being edited")
    language: Optional[str] = Field(default=None, description="Editor language id")
    max_tokens: Optional[int] = Field(default=None, gt=0, description="Maximum tokens to generate")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0, description="Sampling temperature")


class CompletionResponse(BaseModel):
    """Outcome of one autocomplete call; errors are encoded, not raised."""
    completions: List[str]
    latency_ms: int
    context_used: bool
    state: str
    provider: Optional[str] = None
    error: Optional[Dict[str, Any]] = None


# ========== Generation ==========

class GenerateRequestBody(BaseModel):
    """Free-form generation request."""
    prompt: str = Field(..., description="Prompt text")
    model: Optional[str] = Field(default=None, description="Model hint for local providers")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    stop: Optional[List[str]] = Field(default=None, description="Stop sequences")

    def to_options(self) -> dict:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stop": self.stop,
        }


class GenerateCompleteResponse(BaseModel):
    text: str


# ========== Status ==========

class ProviderStatusResponse(BaseModel):
    """Health of one configured provider."""
    name: str
    priority: int
    is_local: bool
    available: bool
    base_url: str
    models: Optional[List[str]] = None
    error: Optional[str] = None


class LLMStatusResponse(BaseModel):
    providers: List[ProviderStatusResponse]
    any_available: bool


class HealthResponse(BaseModel):
    status: str
    version: str
    app_name: str
    any_backend_available: bool
    providers_configured: List[str]
