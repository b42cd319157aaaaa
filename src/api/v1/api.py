from fastapi import APIRouter

from .fact_check import router as fact_check_router
from .health import router as health_router
from .search import router as search_router
from .sessions import router as sessions_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(fact_check_router)
api_router.include_router(search_router)
api_router.include_router(sessions_router)
