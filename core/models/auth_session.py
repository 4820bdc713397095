"""Login sessions and admin impersonation records."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, utcnow


class AuthSession(Base):
    """Bearer token -> user. Possession of the token is the only proof of identity."""

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Impersonation(Base):
    """Marks a session token as borrowed by an admin acting as another user."""

    __tablename__ = "impersonations"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)  # same value as sessions.token
    admin_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
