"""Answer record - the reply posted for a marketplace question."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AnswerMode(str, enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"


class Answer(Base):
    __tablename__ = "answers"

    question_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    final: Mapped[str] = mapped_column(Text)
    mode: Mapped[str] = mapped_column(String(10), default=AnswerMode.AUTO.value)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Answer q={self.question_id} mode={self.mode}>"
