"""OAuth 2.0 client for Mercado Livre apps.

Handles the Authorization Code flow:
1. Generate the consent URL
2. Exchange the callback code for access + refresh tokens
3. Refresh access tokens with the stored refresh token
4. Identify the connected seller via /users/me
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from ..config import settings
from ..errors import AuthExchangeError, MalformedResponseError, RefreshFailedError
from ..schemas.marketplace import TokenResponse, UserProfile, parse_payload

logger = logging.getLogger(__name__)


class OAuthClient:
    """OAuth client bound to one Mercado Livre application.

    Usage:
        client = OAuthClient.from_settings()
        url = client.get_authorization_url()
        # seller grants access, ML redirects to redirect_uri?code=...
        tokens = await client.exchange_code(code)
        profile = await client.fetch_profile(tokens.access_token)
        # later
        tokens = await client.refresh_tokens(stored_refresh_token)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        api_base: str = "https://api.mercadolibre.com",
        auth_url: str = "https://auth.mercadolivre.com.br/authorization",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.api_base = api_base.rstrip("/")
        self.auth_url = auth_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "OAuthClient":
        return cls(
            client_id=settings.ml_client_id,
            client_secret=settings.ml_client_secret,
            redirect_uri=settings.ml_redirect_uri,
            api_base=settings.ml_api_base,
            auth_url=settings.ml_auth_url,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def token_url(self) -> str:
        return f"{self.api_base}/oauth/token"

    def get_authorization_url(self) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }
        return f"{self.auth_url}?{urlencode(params)}"

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _post_token(self, data: dict[str, str]) -> tuple[int, dict[str, Any]]:
        async with self._http() as client:
            response = await client.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {"raw_response": response.text[:500]}
        if not isinstance(body, dict):
            body = {"raw_response": body}
        return response.status_code, body

    async def exchange_code(self, code: str) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Raises:
            AuthExchangeError: If the provider returns no access token
        """
        status, data = await self._post_token(
            {
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )
        try:
            tokens = parse_payload(TokenResponse, data)
        except MalformedResponseError as e:
            raise AuthExchangeError(
                "Falha ao obter access_token do ML",
                error_code="invalid_response",
                details=e.details,
            ) from e
        if not tokens.access_token:
            logger.warning("Code exchange rejected (%s): %s", status, data.get("error"))
            raise AuthExchangeError(
                "Falha ao obter access_token do ML",
                error_code=data.get("error") or "exchange_failed",
                details={"status_code": status, **data},
            )
        return tokens

    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Mint a new access token from a refresh token.

        Raises:
            RefreshFailedError: If the provider returns no access token
        """
        status, data = await self._post_token(
            {
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
            }
        )
        try:
            tokens = parse_payload(TokenResponse, data)
        except MalformedResponseError as e:
            raise RefreshFailedError(
                "Falha no refresh_token", error_code="invalid_response", details=e.details
            ) from e
        if not tokens.access_token:
            raise RefreshFailedError(
                "Falha no refresh_token",
                error_code=data.get("error") or "refresh_failed",
                details={"status_code": status, **data},
            )
        return tokens

    async def fetch_profile(self, access_token: str) -> UserProfile:
        """Return the seller that owns *access_token*."""
        async with self._http() as client:
            response = await client.get(
                f"{self.api_base}/users/me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if response.status_code != 200:
            raise AuthExchangeError(
                f"Could not identify seller: {response.status_code}",
                error_code="profile_failed",
                details={"status_code": response.status_code, "body": response.text[:500]},
            )
        try:
            return parse_payload(UserProfile, response.json())
        except (ValueError, MalformedResponseError) as e:
            raise AuthExchangeError(
                "Could not identify seller: invalid profile", error_code="profile_failed"
            ) from e
