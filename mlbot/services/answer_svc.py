"""Answer store - one record per marketplace question."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.answer import Answer, AnswerMode


async def get_answer(db: AsyncSession, question_id: int) -> Answer | None:
    return await db.get(Answer, question_id)


async def upsert_answer(
    db: AsyncSession,
    question_id: int,
    text: str,
    mode: AnswerMode | str = AnswerMode.AUTO,
    answered_at: datetime | None = None,
) -> Answer:
    """Record the reply for *question_id*, overwriting any earlier one."""
    answered_at = answered_at or datetime.now(timezone.utc)
    mode = AnswerMode(mode).value
    answer = await db.get(Answer, question_id)
    if answer:
        answer.final = text
        answer.mode = mode
        answer.answered_at = answered_at
    else:
        answer = Answer(question_id=question_id, final=text, mode=mode, answered_at=answered_at)
        db.add(answer)
    await db.commit()
    await db.refresh(answer)
    return answer


async def count_answers(db: AsyncSession, question_id: int | None = None) -> int:
    stmt = select(func.count()).select_from(Answer)
    if question_id is not None:
        stmt = stmt.where(Answer.question_id == question_id)
    result = await db.execute(stmt)
    return result.scalar_one()
