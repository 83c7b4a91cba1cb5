"""Shop model - a connected Mercado Livre seller account."""

from __future__ import annotations

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class Shop(TimestampMixin, Base):
    __tablename__ = "shops"

    ml_user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    nickname: Mapped[str | None] = mapped_column(String(200), default=None)

    credential: Mapped["Credential | None"] = relationship(  # noqa: F821
        back_populates="shop", cascade="all, delete-orphan", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Shop {self.ml_user_id} {self.nickname!r}>"
