"""API router aggregation."""

from fastapi import APIRouter

from leadbroker.api.agents import router as agents_router
from leadbroker.api.auth import router as auth_router
from leadbroker.api.commissions import router as commissions_router
from leadbroker.api.health import router as health_router
from leadbroker.api.leads import router as leads_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(agents_router)
api_router.include_router(leads_router)
api_router.include_router(commissions_router)

__all__ = ["api_router"]
