"""Database base and session setup."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

import config

logger = logging.getLogger("linkpage.db")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


engine = create_async_engine(
    config.DATABASE_URL,
    echo=False,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# Migrations for existing databases: (schema change, follow-up statements run only if it applied)
_MIGRATIONS = [
    (
        "ALTER TABLE users ADD COLUMN role VARCHAR(16) NOT NULL DEFAULT 'user'",
        ["UPDATE users SET role = 'admin' WHERE id = 1"],
    ),
]


async def _run_migrations(conn) -> None:
    """Add new columns if they don't exist."""
    for sql, followups in _MIGRATIONS:
        try:
            await conn.execute(text(sql))
        except OperationalError:
            continue  # Column already exists
        logger.info("Applied migration: %s", sql)
        for followup in followups:
            await conn.execute(text(followup))


async def init_db() -> None:
    """Create all tables and run migrations."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await _run_migrations(conn)
