"""FastAPI dependencies for outbound clients."""

from __future__ import annotations

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .api.client import MarketplaceClient
from .database import get_db
from .oauth.client import OAuthClient
from .oauth.replay import CodeReplayGuard, replay_guard
from .services.ai_svc import AnswerGenerator


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound HTTP. None means the real network."""
    return None


def get_replay_guard() -> CodeReplayGuard:
    return replay_guard


def get_oauth_client(
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> OAuthClient:
    return OAuthClient.from_settings(transport=transport)


def get_answer_generator(
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> AnswerGenerator:
    return AnswerGenerator.from_settings(transport=transport)


def get_marketplace_client(
    db: AsyncSession = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> MarketplaceClient:
    return MarketplaceClient(db, oauth=oauth, transport=transport)
