"""Declarative base for the conversation store."""

from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class ConversationBase(DeclarativeBase):
    """Base declarative class for conversation store tables."""


__all__ = ["ConversationBase", "JSONDocument"]
