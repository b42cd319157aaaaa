import asyncio

from fastapi import APIRouter

from core.config import get_settings
from schemas.api import HealthResponse, ProviderStatus
from services.providers import exa, linkup, parallel, perplexity, tavily


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Probe every upstream provider concurrently."""
    settings = get_settings()
    timeout = settings.HEALTH_CHECK_TIMEOUT_SECONDS
    probes = {
        "perplexity": perplexity.check_health(
            settings.PERPLEXITY_API_KEY, timeout=timeout
        ),
        "exa": exa.check_health(settings.EXA_API_KEY, timeout=timeout),
        "tavily": tavily.check_health(settings.TAVILY_API_KEY, timeout=timeout),
        "linkup": linkup.check_health(settings.LINKUP_API_KEY, timeout=timeout),
        "parallel": parallel.check_health(settings.PARALLEL_API_KEY, timeout=timeout),
    }
    results = await asyncio.gather(*probes.values())
    apis = {
        name: ProviderStatus(configured=r.configured, connected=r.connected)
        for name, r in zip(probes, results, strict=True)
    }
    return HealthResponse(
        status="ok" if any(s.connected for s in apis.values()) else "error",
        apis=apis,
        models=list(perplexity.MODELS),
    )
