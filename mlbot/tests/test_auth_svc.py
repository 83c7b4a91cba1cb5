"""Tests for code exchange and token refresh with write-through."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from mlbot.errors import AuthExchangeError, NotFoundError, RefreshFailedError
from mlbot.models import Credential, Shop
from mlbot.oauth.replay import CodeReplayGuard
from mlbot.services import auth_svc, token_svc
from mlbot.tests.conftest import SELLER_ID

TOKEN_OK = {"access_token": "APP_USR-new", "refresh_token": "TG-new", "expires_in": 21600}
PROFILE = {"id": SELLER_ID, "nickname": "LOJA_TESTE"}


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_persists_shop_and_credential(self, db: AsyncSession, oauth_client, upstream, guard):
        upstream.add("POST", "/oauth/token", (200, TOKEN_OK))
        upstream.add("GET", "/users/me", (200, PROFILE))

        credential = await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)

        assert credential.ml_user_id == SELLER_ID
        assert credential.access_token == "APP_USR-new"
        shop = await db.get(Shop, SELLER_ID)
        assert shop.nickname == "LOJA_TESTE"

    @pytest.mark.asyncio
    async def test_reconnect_replaces_credential(
        self, db: AsyncSession, oauth_client, upstream, guard, seller: Credential
    ):
        upstream.add("POST", "/oauth/token", (200, TOKEN_OK))
        upstream.add("GET", "/users/me", (200, PROFILE))

        await auth_svc.exchange_code(db, "TG-code-2", oauth=oauth_client, guard=guard)

        credential = await token_svc.get_credential(db, SELLER_ID)
        assert credential.access_token == "APP_USR-new"
        assert credential.refresh_token == "TG-new"

    @pytest.mark.asyncio
    async def test_replayed_code_rejected_without_network(self, db, oauth_client, upstream, guard):
        upstream.add("POST", "/oauth/token", (200, TOKEN_OK))
        upstream.add("GET", "/users/me", (200, PROFILE))
        await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)
        sent = len(upstream.requests)

        with pytest.raises(AuthExchangeError) as exc_info:
            await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)

        assert exc_info.value.error_code == "code_replayed"
        assert len(upstream.requests) == sent

    @pytest.mark.asyncio
    async def test_full_guard_refuses_without_network(self, db, oauth_client, upstream):
        guard = CodeReplayGuard(max_entries=1)
        guard.check_and_remember("TG-other")

        with pytest.raises(AuthExchangeError) as exc_info:
            await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)

        assert exc_info.value.error_code == "replay_guard_full"
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_null_token_extras_are_accepted(self, db, oauth_client, upstream, guard):
        upstream.add(
            "POST",
            "/oauth/token",
            (200, {**TOKEN_OK, "scope": None, "token_type": None, "user_id": None}),
        )
        upstream.add("GET", "/users/me", (200, PROFILE))

        credential = await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)

        assert credential.access_token == "APP_USR-new"
        assert (await token_svc.get_credential(db, SELLER_ID)).refresh_token == "TG-new"

    @pytest.mark.asyncio
    async def test_failed_code_is_still_remembered(self, db, oauth_client, upstream):
        guard = CodeReplayGuard()
        upstream.add("POST", "/oauth/token", (400, {"error": "invalid_grant"}))

        with pytest.raises(AuthExchangeError):
            await auth_svc.exchange_code(db, "TG-bad", oauth=oauth_client, guard=guard)

        assert "TG-bad" in guard

    @pytest.mark.asyncio
    async def test_missing_code(self, db, oauth_client, guard):
        with pytest.raises(AuthExchangeError) as exc_info:
            await auth_svc.exchange_code(db, "", oauth=oauth_client, guard=guard)

        assert exc_info.value.error_code == "missing_code"

    @pytest.mark.asyncio
    async def test_no_access_token_stores_nothing(self, db, oauth_client, upstream, guard):
        upstream.add("POST", "/oauth/token", (200, {"refresh_token": "TG-x"}))

        with pytest.raises(AuthExchangeError):
            await auth_svc.exchange_code(db, "TG-code", oauth=oauth_client, guard=guard)

        assert await token_svc.get_credential(db, SELLER_ID) is None
        assert upstream.calls("GET", "/users/me") == []


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_writes_through(self, db, oauth_client, upstream, seller):
        upstream.add("POST", "/oauth/token", (200, {"access_token": "APP_USR-2"}))

        token = await auth_svc.refresh(db, SELLER_ID, oauth=oauth_client)

        assert token == "APP_USR-2"
        credential = await token_svc.get_credential(db, SELLER_ID)
        assert credential.access_token == "APP_USR-2"
        assert credential.refresh_token == "TG-old"

    @pytest.mark.asyncio
    async def test_unknown_seller(self, db, oauth_client, upstream):
        with pytest.raises(NotFoundError):
            await auth_svc.refresh(db, 999, oauth=oauth_client)

        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_provider_returns_no_token(self, db, oauth_client, upstream, seller):
        upstream.add("POST", "/oauth/token", (400, {"error": "invalid_grant"}))

        with pytest.raises(RefreshFailedError):
            await auth_svc.refresh(db, SELLER_ID, oauth=oauth_client)

        credential = await token_svc.get_credential(db, SELLER_ID)
        assert credential.access_token == "APP_USR-old"
