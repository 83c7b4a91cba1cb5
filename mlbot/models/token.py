"""OAuth credential stored per seller account."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Credential(Base):
    __tablename__ = "tokens"

    ml_user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("shops.ml_user_id", ondelete="CASCADE"),
        primary_key=True,
        autoincrement=False,
    )
    access_token: Mapped[str] = mapped_column(Text)
    refresh_token: Mapped[str | None] = mapped_column(Text, default=None)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    shop: Mapped["Shop"] = relationship(back_populates="credential")  # noqa: F821

    def __repr__(self) -> str:
        return f"<Credential {self.ml_user_id} expires={self.expires_at}>"
