"""
Nexus Forms Engine — FastAPI Application Factory.

Registers the forms controller router and configures CORS,
logging, and lifespan events.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nexusforms.controllers.forms_controller import router as forms_router
from nexusforms.repository.asset_repository import AssetRepository

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

log_level = os.getenv("LOG_LEVEL", "info").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger("nexusforms")


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    - **Startup**: Report where the logo is read from and where the relay lives.
    - **Shutdown**: Placeholder for cleanup.
    """
    assets = AssetRepository()
    logger.info("Nexus Forms Engine starting up …")
    if assets.load_logo() is None:
        logger.warning("Logo %s not found under %s; PDFs will render without it", assets.logo_name, assets.root)
    logger.info("Email relay: %s", os.getenv("RELAY_URL", "http://localhost:3000/api/send-email"))
    yield
    logger.info("Nexus Forms Engine shutting down")


# ---------------------------------------------------------------------------
# App instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Nexus Forms Engine",
    description=(
        "Irish tax-compliance form processor. "
        "Post a mileage logbook, expense report, company incorporation request or "
        "SEPA/card mandate and receive a paginated PDF, optionally emailed through the relay."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow all origins during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Render-Warnings"],
)

# Mount the forms controller
app.include_router(forms_router)


# Root redirect to docs
@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Nexus Forms Engine v1.0.0", "docs": "/docs"}
