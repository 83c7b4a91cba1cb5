"""OAuth connect/callback routes for seller accounts."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..dependencies import get_oauth_client, get_replay_guard
from ..errors import AuthExchangeError
from ..oauth.client import OAuthClient
from ..oauth.replay import CodeReplayGuard
from ..services import auth_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ml", tags=["oauth"])


@router.get("/connect")
async def connect(oauth: OAuthClient = Depends(get_oauth_client)):
    """Send the seller to the Mercado Livre consent page."""
    if not settings.oauth_configured:
        missing = [
            name
            for name, value in (
                ("ML_CLIENT_ID", settings.ml_client_id),
                ("ML_REDIRECT_URI", settings.ml_redirect_uri),
            )
            if not value
        ]
        logger.error("OAuth connect requested but %s not set", ", ".join(missing))
        return PlainTextResponse(
            f"OAuth não configurado: defina {', '.join(missing)}", status_code=500
        )
    return RedirectResponse(oauth.get_authorization_url(), status_code=302)


@router.get("/callback")
async def callback(
    code: str | None = None,
    db: AsyncSession = Depends(get_db),
    oauth: OAuthClient = Depends(get_oauth_client),
    guard: CodeReplayGuard = Depends(get_replay_guard),
):
    if not code:
        return PlainTextResponse('Faltou "code" do OAuth', status_code=400)
    try:
        await auth_svc.exchange_code(db, code, oauth=oauth, guard=guard)
    except AuthExchangeError as e:
        logger.warning("OAuth callback rejected: %s (%s)", e, e.error_code)
        return PlainTextResponse(str(e), status_code=400)
    except Exception:
        logger.exception("OAuth callback error")
        return PlainTextResponse("Erro no OAuth", status_code=500)
    return PlainTextResponse("Conectado! Pode fechar a aba.")
