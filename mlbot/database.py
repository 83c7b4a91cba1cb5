"""Async database engine and session factory."""

from __future__ import annotations

import ssl
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import MLBotSettings, settings


def engine_connect_args(cfg: MLBotSettings) -> dict[str, Any]:
    """asyncpg connect args: connect timeout plus unverified TLS for hosted Postgres."""
    if cfg.is_sqlite:
        return {}
    args: dict[str, Any] = {"timeout": cfg.database_connect_timeout}
    if cfg.database_ssl:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        args["ssl"] = ctx
    return args


engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    connect_args=engine_connect_args(settings),
)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables() -> None:
    from .models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """FastAPI dependency that yields an async session."""
    async with async_session_factory() as session:
        yield session
