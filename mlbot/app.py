"""FastAPI application for the Mercado Livre question bot."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .database import create_tables

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_tables()
    if not settings.oauth_configured:
        logger.warning("ML_CLIENT_ID / ML_REDIRECT_URI not set; /ml/connect will fail")
    if not settings.hf_token:
        logger.warning("HF_TOKEN not set; answers will use the fallback reply")
    yield


app = FastAPI(title=settings.app_title, lifespan=lifespan)

# Import and register routers
from .routers import health, oauth, webhooks  # noqa: E402

app.include_router(health.router)
app.include_router(oauth.router)
app.include_router(webhooks.router)
