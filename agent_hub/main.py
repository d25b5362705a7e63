# =============================================================================
# Application Entrypoint — FastAPI App Assembly
# =============================================================================
#
# Run with:
#   uvicorn agent_hub.main:app --reload
#
# STARTUP (lifespan):
# 1. Create database tables (storage_backend = "sql" only)
# 2. Build the provider chain so its configuration is logged once
#
# Routers:
#   status.py         /health, /agents, /status, /status/probe
#   chat.py           /chat, /chat/transcripts...
#   working_groups.py /working-groups...
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agent_hub.api import chat, status, working_groups
from agent_hub.api.deps import get_provider_chain
from agent_hub.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if settings.storage_backend == "sql":
        from agent_hub.db.engine import async_engine, init_models

        await init_models()
        logger.info("Database ready (%s)", async_engine.url.render_as_string(hide_password=True))
    else:
        logger.warning("storage_backend=%s: data is lost on restart", settings.storage_backend)

    chain = get_provider_chain()
    if not any(tier.configured for tier in chain.tiers):
        logger.warning("No provider tier has credentials; every answer will be a static fallback")

    yield

    if settings.storage_backend == "sql":
        from agent_hub.db.engine import async_engine

        await async_engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Multi-agent governance research service: persona chat with an "
        "ordered provider fallback chain, chat transcripts, and working-group "
        "document containers with intelligence disclosure."
    ),
    lifespan=lifespan,
)

app.include_router(status.router)
app.include_router(chat.router)
app.include_router(working_groups.router)
