"""Question-notification pipeline.

``process_notification`` does the work and returns a WebhookOutcome.
``handle_webhook`` wraps it so that every failure becomes a logged
``failed`` outcome; the route always acknowledges with 200 so ML does not
redeliver. Failed answers are not retried.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..api.client import MarketplaceClient
from ..models.answer import AnswerMode
from ..schemas.marketplace import WebhookNotification
from . import answer_svc, token_svc
from .ai_svc import AnswerContext, AnswerGenerator

logger = logging.getLogger(__name__)

QUESTIONS_TOPIC = "questions"
QUESTIONS_RESOURCE = "/questions/"


class OutcomeStatus(str, enum.Enum):
    IGNORED = "ignored"
    NO_CREDENTIALS = "no_credentials"
    ANSWERED = "answered"
    FAILED = "failed"


@dataclass
class WebhookOutcome:
    status: OutcomeStatus
    question_id: int | None = None
    ml_user_id: int | None = None
    answer: str | None = None
    error: str | None = None


def parse_notification(payload: Any) -> WebhookNotification | None:
    if not isinstance(payload, dict):
        return None
    try:
        return WebhookNotification.model_validate(payload)
    except ValidationError:
        return None


def is_question_notification(notification: WebhookNotification) -> bool:
    # ML sends both "questions" and "marketplace_questions".
    topic = (notification.topic or "").lower()
    resource = notification.resource or ""
    return QUESTIONS_TOPIC in topic and QUESTIONS_RESOURCE in resource


def question_id_from_resource(resource: str) -> int | None:
    tail = urlsplit(resource).path.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


async def process_notification(
    db: AsyncSession,
    payload: Any,
    api: MarketplaceClient,
    generator: AnswerGenerator,
) -> WebhookOutcome:
    notification = parse_notification(payload)
    if notification is None or not is_question_notification(notification):
        return WebhookOutcome(OutcomeStatus.IGNORED)

    question_id = question_id_from_resource(notification.resource or "")
    if question_id is None:
        return WebhookOutcome(OutcomeStatus.IGNORED)

    ml_user_id = notification.user_id
    if ml_user_id is None or not await token_svc.get_access_token(db, ml_user_id):
        return WebhookOutcome(OutcomeStatus.NO_CREDENTIALS, question_id, ml_user_id)

    question = await api.get_question(question_id, ml_user_id)
    item = await api.get_item(question.item_id, ml_user_id)

    text = await generator.generate(AnswerContext.from_listing(question, item))
    await api.post_answer(question.id, text, ml_user_id)
    await answer_svc.upsert_answer(db, question.id, text, AnswerMode.AUTO)

    return WebhookOutcome(OutcomeStatus.ANSWERED, question.id, ml_user_id, answer=text)


async def handle_webhook(
    db: AsyncSession,
    payload: Any,
    api: MarketplaceClient,
    generator: AnswerGenerator,
) -> WebhookOutcome:
    """Run the pipeline; never raises."""
    try:
        outcome = await process_notification(db, payload, api, generator)
    except Exception as exc:
        logger.exception("Webhook error")
        outcome = WebhookOutcome(OutcomeStatus.FAILED, error=str(exc))
        if isinstance(payload, dict):
            outcome.ml_user_id = payload.get("user_id")
            outcome.question_id = question_id_from_resource(str(payload.get("resource") or ""))

    if outcome.status is OutcomeStatus.ANSWERED:
        logger.info("Answered question %s for seller %s", outcome.question_id, outcome.ml_user_id)
    else:
        logger.info(
            "Webhook %s (question=%s seller=%s)",
            outcome.status.value,
            outcome.question_id,
            outcome.ml_user_id,
        )
    return outcome
