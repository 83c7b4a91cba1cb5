"""Async test fixtures for mlbot using SQLite and a fake upstream."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mlbot.api.client import MarketplaceClient
from mlbot.config import settings
from mlbot.database import get_db
from mlbot.dependencies import get_http_transport, get_replay_guard
from mlbot.models import Base, Credential, Shop
from mlbot.oauth.client import OAuthClient
from mlbot.oauth.replay import CodeReplayGuard
from mlbot.services.ai_svc import AnswerGenerator

SELLER_ID = 42
QUESTION_ID = 555
ITEM_ID = "MLB123"
HF_URL = "https://hf.test/models/test-model"
HF_PATH = "/models/test-model"

MOCK_QUESTION = {
    "id": QUESTION_ID,
    "item_id": ITEM_ID,
    "text": "Tem na cor azul?",
    "status": "UNANSWERED",
}

MOCK_ITEM = {
    "id": ITEM_ID,
    "title": "Camiseta Básica Algodão",
    "price": 49.9,
    "shipping": {"mode": "me2"},
    "variations": [{"id": 1}, {"id": 2}, {"id": 3}],
}


class FakeUpstream:
    """Routes outbound requests by (method, path) to canned responses.

    Responses queued for a route are served in order; the last one repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: tuple[int, Any]) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "not_found"})
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, Exception):
            raise body
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def oauth_client(upstream: FakeUpstream) -> OAuthClient:
    return OAuthClient(
        client_id="test_client_id",
        client_secret="test_client_secret",
        redirect_uri="https://bot.example.com/ml/callback",
        transport=upstream.transport,
    )


@pytest.fixture
def generator(upstream: FakeUpstream) -> AnswerGenerator:
    return AnswerGenerator(token="hf_test", model_url=HF_URL, transport=upstream.transport)


@pytest.fixture
def api(db: AsyncSession, oauth_client: OAuthClient, upstream: FakeUpstream) -> MarketplaceClient:
    return MarketplaceClient(
        db,
        oauth=oauth_client,
        base_url="https://api.mercadolibre.com",
        transport=upstream.transport,
    )


@pytest_asyncio.fixture
async def seller(db: AsyncSession) -> Credential:
    """Connected seller 42 with a stored credential."""
    db.add(Shop(ml_user_id=SELLER_ID, nickname="LOJA_TESTE"))
    credential = Credential(
        ml_user_id=SELLER_ID,
        access_token="APP_USR-old",
        refresh_token="TG-old",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=6),
    )
    db.add(credential)
    await db.commit()
    await db.refresh(credential)
    return credential


@pytest.fixture
def guard() -> CodeReplayGuard:
    return CodeReplayGuard(window_seconds=120)


@pytest_asyncio.fixture
async def client(engine, upstream: FakeUpstream, guard: CodeReplayGuard, monkeypatch):
    """HTTPX async test client against the mlbot app."""
    from mlbot.app import app

    monkeypatch.setattr(settings, "ml_client_id", "test_client_id")
    monkeypatch.setattr(settings, "ml_client_secret", "test_client_secret")
    monkeypatch.setattr(settings, "ml_redirect_uri", "https://bot.example.com/ml/callback")
    monkeypatch.setattr(settings, "hf_api_base", "https://hf.test/models")
    monkeypatch.setattr(settings, "hf_model", "test-model")

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_transport] = lambda: upstream.transport
    app.dependency_overrides[get_replay_guard] = lambda: guard

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
