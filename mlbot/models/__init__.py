"""mlbot database models."""

from .base import Base
from .shop import Shop
from .token import Credential
from .answer import Answer, AnswerMode

__all__ = [
    "Base",
    "Shop",
    "Credential",
    "Answer",
    "AnswerMode",
]
