"""Authenticated Mercado Livre API client.

Every call reads the seller's current access token from the token store.
A 401 triggers exactly one refresh and one retry of the same request; a
second 401 or any other non-2xx status raises UpstreamError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import NotFoundError, UpstreamError
from ..oauth.client import OAuthClient
from ..schemas.marketplace import Item, Question, parse_payload
from ..services import auth_svc, token_svc

logger = logging.getLogger(__name__)


class MarketplaceClient:
    """Per-request API client bound to a database session."""

    def __init__(
        self,
        db: AsyncSession,
        oauth: OAuthClient | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.db = db
        self.oauth = oauth
        self.base_url = (base_url or settings.ml_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        token: str,
        json: Any = None,
    ) -> httpx.Response:
        return await client.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
        )

    async def call(
        self,
        path: str,
        ml_user_id: int,
        method: str = "GET",
        json: Any = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        token = await token_svc.get_access_token(self.db, ml_user_id)
        if not token:
            raise NotFoundError(
                "access_token não encontrado",
                error_code="no_credentials",
                details={"ml_user_id": ml_user_id},
            )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await self._send(client, method, path, token, json)
            if response.status_code == 401:
                logger.info("401 on %s %s for seller %s, refreshing", method, path, ml_user_id)
                token = await auth_svc.refresh(self.db, ml_user_id, oauth=self.oauth)
                response = await self._send(client, method, path, token, json)

        if not response.is_success:
            raise UpstreamError(response.status_code, response.text, response.reason_phrase)
        if not response.content:
            return None
        return response.json()

    async def get(self, path: str, ml_user_id: int) -> Any:
        return await self.call(path, ml_user_id)

    async def post(self, path: str, ml_user_id: int, body: Any) -> Any:
        return await self.call(path, ml_user_id, method="POST", json=body)

    async def get_question(self, question_id: int, ml_user_id: int) -> Question:
        return parse_payload(Question, await self.get(f"/questions/{question_id}", ml_user_id))

    async def get_item(self, item_id: str, ml_user_id: int) -> Item:
        return parse_payload(Item, await self.get(f"/items/{item_id}", ml_user_id))

    async def post_answer(self, question_id: int, text: str, ml_user_id: int) -> Any:
        return await self.post("/answers", ml_user_id, {"question_id": question_id, "text": text})
