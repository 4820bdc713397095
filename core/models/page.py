"""Public profile page, one per user."""
from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, utcnow


class Page(Base):
    """Customizable profile reachable at /<slug>. user_id is the primary key, so at most one per user."""

    __tablename__ = "pages"

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), primary_key=True)
    slug: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(40), nullable=False, default="")
    bio: Mapped[str] = mapped_column(String(240), nullable=False, default="")
    avatar_url: Mapped[str] = mapped_column(String(400), nullable=False, default="")
    bg_url: Mapped[str] = mapped_column(String(400), nullable=False, default="")
    accent: Mapped[str] = mapped_column(String(16), nullable=False, default="#8b5cf6")
    song_url: Mapped[str] = mapped_column(String(400), nullable=False, default="")
    song_volume: Mapped[float] = mapped_column(Float, nullable=False, default=0.4)
    links_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    custom_css: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def links(self) -> list[dict]:
        return json.loads(self.links_json or "[]")

    @links.setter
    def links(self, value: list[dict]) -> None:
        self.links_json = json.dumps(value)
