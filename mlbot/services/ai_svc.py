"""Answer generation via the Hugging Face Inference API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import settings
from ..errors import GenerationError
from ..schemas.marketplace import Item, Question

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """Você é atendente no Mercado Livre.
- Responda em PT-BR, curto (1–2 frases).
- Não ofereça contato fora do ML.
- Só prometa o que consta no anúncio."""

FALLBACK_REPLY = "Estamos à disposição pelo Mercado Livre!"

OFF_PLATFORM_RE = re.compile(r"whats(app)?|telegram|instagram|contato\s+externo", re.IGNORECASE)
IN_PLATFORM_PHRASE = "apenas pelo Mercado Livre"


@dataclass
class AnswerContext:
    question: str
    title: str
    price: float | None = None
    shipping: str | None = None
    variations: int = 0

    @classmethod
    def from_listing(cls, question: Question, item: Item) -> "AnswerContext":
        return cls(
            question=question.text,
            title=item.title,
            price=item.price,
            shipping=item.shipping_mode,
            variations=item.variation_count,
        )


def _field(value: Any) -> str:
    return "não informado" if value is None else str(value)


def build_prompt(ctx: AnswerContext) -> str:
    user = (
        f"Título: {_field(ctx.title)}\n"
        f"Preço: {_field(ctx.price)}\n"
        f"Envio: {_field(ctx.shipping)}\n"
        f"Variações: {ctx.variations}\n"
        f"Pergunta: {_field(ctx.question)}"
    )
    return f"{SYSTEM_PROMPT}\n---\n{user}"


def sanitize_reply(text: str, max_chars: int = 900) -> str:
    """Replace off-platform contact mentions and enforce the ML length limit."""
    return OFF_PLATFORM_RE.sub(IN_PLATFORM_PHRASE, text)[:max_chars]


class AnswerGenerator:
    """Calls a hosted text-generation model and post-processes its output."""

    def __init__(
        self,
        token: str,
        model_url: str,
        max_new_tokens: int = 120,
        temperature: float = 0.6,
        max_chars: int = 900,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.model_url = model_url
        self.max_new_tokens = max_new_tokens
        self.temperature = temperature
        self.max_chars = max_chars
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: httpx.AsyncBaseTransport | None = None) -> "AnswerGenerator":
        return cls(
            token=settings.hf_token,
            model_url=settings.hf_model_url,
            max_new_tokens=settings.hf_max_new_tokens,
            temperature=settings.hf_temperature,
            max_chars=settings.answer_max_chars,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    async def infer(self, prompt: str) -> str:
        """Raw model call.

        Raises:
            GenerationError: Transport failure, non-2xx status or unexpected shape
        """
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                "temperature": self.temperature,
                "return_full_text": False,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.model_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.token}"},
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationError(f"Inference request failed: {e}", error_code="transport") from e

        if not response.is_success:
            raise GenerationError(
                f"Inference returned {response.status_code}",
                error_code="upstream_status",
                details={"status_code": response.status_code},
            )
        if not (isinstance(data, list) and data and isinstance(data[0], dict)):
            raise GenerationError("Unexpected inference payload", error_code="invalid_response")
        text = data[0].get("generated_text")
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Empty generated_text", error_code="invalid_response")
        return text

    async def generate(self, ctx: AnswerContext) -> str:
        """Reply text for *ctx*. Never raises; falls back to a canned reply."""
        try:
            text = await self.infer(build_prompt(ctx))
        except GenerationError as e:
            logger.warning("Generation failed, using fallback reply: %s", e)
            text = FALLBACK_REPLY
        return sanitize_reply(text, self.max_chars)
