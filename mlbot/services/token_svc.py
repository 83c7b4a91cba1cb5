"""Token store - per-seller OAuth credentials."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.shop import Shop
from ..models.token import Credential
from ..schemas.marketplace import TokenResponse


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_expiry(expires_in: int | None, now: datetime | None = None) -> datetime:
    """Expiry from the provider TTL, falling back to the configured default."""
    now = now or _utcnow()
    return now + timedelta(seconds=expires_in or settings.ml_token_ttl_seconds)


async def get_credential(db: AsyncSession, ml_user_id: int) -> Credential | None:
    result = await db.execute(select(Credential).where(Credential.ml_user_id == ml_user_id))
    return result.scalar_one_or_none()


async def get_access_token(db: AsyncSession, ml_user_id: int) -> str | None:
    credential = await get_credential(db, ml_user_id)
    return credential.access_token if credential else None


async def upsert_shop(db: AsyncSession, ml_user_id: int, nickname: str | None) -> Shop:
    shop = await db.get(Shop, ml_user_id)
    if shop:
        shop.nickname = nickname
    else:
        shop = Shop(ml_user_id=ml_user_id, nickname=nickname)
        db.add(shop)
    await db.commit()
    await db.refresh(shop)
    return shop


async def save_credential(
    db: AsyncSession,
    ml_user_id: int,
    tokens: TokenResponse,
    now: datetime | None = None,
) -> Credential:
    """Insert or fully replace the credential after a code exchange."""
    now = now or _utcnow()
    credential = await get_credential(db, ml_user_id)
    if credential is None:
        credential = Credential(ml_user_id=ml_user_id)
        db.add(credential)
    credential.access_token = tokens.access_token
    credential.refresh_token = tokens.refresh_token
    credential.expires_at = compute_expiry(tokens.expires_in, now)
    credential.updated_at = now
    await db.commit()
    await db.refresh(credential)
    return credential


async def apply_refresh(
    db: AsyncSession,
    credential: Credential,
    tokens: TokenResponse,
    now: datetime | None = None,
) -> Credential:
    """Store a refresh result. The refresh token is kept unless a new one was issued."""
    now = now or _utcnow()
    credential.access_token = tokens.access_token
    if tokens.refresh_token:
        credential.refresh_token = tokens.refresh_token
    credential.expires_at = compute_expiry(tokens.expires_in, now)
    credential.updated_at = now
    await db.commit()
    await db.refresh(credential)
    return credential
