"""Typed views of Mercado Livre and OAuth payloads.

Upstream JSON is validated here so the rest of the code never touches
raw dicts. Unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import MalformedResponseError


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TokenResponse(_Payload):
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None


class UserProfile(_Payload):
    id: int
    nickname: str | None = None


class Question(_Payload):
    id: int
    item_id: str
    text: str = ""
    status: str | None = None


class Shipping(_Payload):
    mode: str | None = None


class Item(_Payload):
    id: str
    title: str = ""
    price: float | None = None
    shipping: Shipping | None = None
    variations: Any = None

    @property
    def shipping_mode(self) -> str | None:
        return self.shipping.mode if self.shipping else None

    @property
    def variation_count(self) -> int:
        return len(self.variations) if isinstance(self.variations, list) else 0


class WebhookNotification(_Payload):
    topic: str | None = None
    resource: str | None = None
    user_id: int | None = None


M = TypeVar("M", bound=BaseModel)


def parse_payload(model: type[M], data: Any) -> M:
    """Validate *data* into *model* or raise MalformedResponseError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Unexpected {model.__name__} payload",
            error_code="invalid_response",
            details={"errors": e.errors(include_url=False)},
        ) from e
