"""OAuth lifecycle - code exchange and token refresh with write-through."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AuthExchangeError, NotFoundError
from ..models.token import Credential
from ..oauth.client import OAuthClient
from ..oauth.replay import CodeReplayGuard, replay_guard
from . import token_svc

logger = logging.getLogger(__name__)


async def exchange_code(
    db: AsyncSession,
    code: str,
    oauth: OAuthClient | None = None,
    guard: CodeReplayGuard | None = None,
) -> Credential:
    """Complete the authorization-code flow and persist the seller's credential.

    The code is remembered on first sight, so a replay inside the window is
    rejected even when the first attempt failed.

    Raises:
        AuthExchangeError: Missing, replayed or rejected code, or a full replay guard
    """
    if not code:
        raise AuthExchangeError('Faltou "code" do OAuth', error_code="missing_code")
    guard = guard if guard is not None else replay_guard
    if not guard.check_and_remember(code):
        if code not in guard:
            logger.warning("Replay guard full (%d codes), refusing new OAuth code", len(guard))
            raise AuthExchangeError(
                "Muitas conexões simultâneas, tente novamente em instantes",
                error_code="replay_guard_full",
            )
        raise AuthExchangeError(
            "Código OAuth já utilizado, reinicie a conexão", error_code="code_replayed"
        )

    oauth = oauth or OAuthClient.from_settings()
    tokens = await oauth.exchange_code(code)
    profile = await oauth.fetch_profile(tokens.access_token)

    await token_svc.upsert_shop(db, profile.id, profile.nickname)
    credential = await token_svc.save_credential(db, profile.id, tokens)
    logger.info("Connected seller %s (%s)", profile.id, profile.nickname)
    return credential


async def refresh(
    db: AsyncSession,
    ml_user_id: int,
    oauth: OAuthClient | None = None,
) -> str:
    """Refresh the seller's access token and return the new one.

    Raises:
        NotFoundError: No stored refresh token for the seller
        RefreshFailedError: Provider returned no access token
    """
    credential = await token_svc.get_credential(db, ml_user_id)
    if credential is None or not credential.refresh_token:
        raise NotFoundError(
            "refresh_token não encontrado",
            error_code="no_refresh_token",
            details={"ml_user_id": ml_user_id},
        )

    oauth = oauth or OAuthClient.from_settings()
    tokens = await oauth.refresh_tokens(credential.refresh_token)
    credential = await token_svc.apply_refresh(db, credential, tokens)
    logger.info("Refreshed access token for seller %s", ml_user_id)
    return credential.access_token
