"""
Status and health check endpoints.

WHAT: Health monitoring for configured LLM providers
WHY: Editors can tell the user to start a daemon or set a key before typing
HOW: FastAPI endpoints calling router.probe_all()
"""

from fastapi import APIRouter, Depends

from ....llm.provider_factory import get_router
from ....llm.router import GenerationRouter
from ....models.api_schemas import HealthResponse, LLMStatusResponse, ProviderStatusResponse
from ....core.config import settings
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/llm/status", response_model=LLMStatusResponse)
async def llm_status(generation_router: GenerationRouter = Depends(get_router)):
    """
    Check every configured provider.

    Returns:
        One status per provider in routing order
    """
    statuses = await generation_router.probe_all()
    providers = [
        ProviderStatusResponse(
            name=s.name,
            priority=s.priority,
            is_local=s.is_local,
            available=s.available,
            base_url=s.base_url,
            models=s.models,
            error=s.error,
        )
        for s in statuses
    ]
    return LLMStatusResponse(providers=providers, any_available=any(p.available for p in providers))


@router.get("/health", response_model=HealthResponse)
async def health_check(generation_router: GenerationRouter = Depends(get_router)):
    """
    Overall application health check.

    Degraded when no provider is currently reachable; the service itself
    still answers autocomplete requests with empty results.
    """
    statuses = await generation_router.probe_all()
    any_available = any(s.available for s in statuses)
    if not any_available:
        logger.warning("Health check: no LLM backend available")

    return HealthResponse(
        status="healthy" if any_available else "degraded",
        version=settings.APP_VERSION,
        app_name=settings.APP_NAME,
        any_backend_available=any_available,
        providers_configured=[d.name for d in generation_router.providers],
    )
