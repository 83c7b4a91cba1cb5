"""Inbound Mercado Livre notifications."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..api.client import MarketplaceClient
from ..database import get_db
from ..dependencies import get_answer_generator, get_marketplace_client
from ..services import webhook_svc
from ..services.ai_svc import AnswerGenerator

router = APIRouter(prefix="/ml", tags=["webhooks"])


@router.post("/webhook")
async def receive_notification(
    request: Request,
    db: AsyncSession = Depends(get_db),
    api: MarketplaceClient = Depends(get_marketplace_client),
    generator: AnswerGenerator = Depends(get_answer_generator),
):
    """Acknowledge every notification with 200, whatever happens downstream."""
    raw_body = await request.body()
    payload = None
    if raw_body:
        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            payload = None

    await webhook_svc.handle_webhook(db, payload, api, generator)
    return PlainTextResponse("OK")
