"""
LeadBroker - lead referral and commission tracking for loan brokerage

Main FastAPI application with:
- Referral-code based lead intake
- Lead status pipeline with commission booking on acceptance
- Agent directory with admin approval
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from leadbroker.api import api_router
from leadbroker.config import settings
from leadbroker.db import get_db_context
from leadbroker.exceptions import register_exception_handlers
from leadbroker.services.bootstrap import bootstrap

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the super admin that owns the default referral code
    - Initializes the lead display-id sequence
    """
    logger.info("Starting LeadBroker...")

    async with get_db_context() as db:
        await bootstrap(db)

    logger.info("LeadBroker started successfully!")

    yield

    logger.info("Shutting down LeadBroker...")


# Create FastAPI application
app = FastAPI(
    title="LeadBroker",
    description="Lead referral and commission tracking",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

register_exception_handlers(app)

# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leadbroker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
