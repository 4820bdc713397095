"""Invite ledger: mint keys, look them up, claim them exactly once."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.models import InviteKey
from core.models.base import utcnow
from core.tokens import INVITE_KEY_LENGTH, random_token

logger = logging.getLogger("linkpage.admin")


async def mint_invite(session: AsyncSession, admin_id: int) -> InviteKey:
    invite = InviteKey(key=random_token(INVITE_KEY_LENGTH).upper(), created_by=admin_id)
    session.add(invite)
    await session.commit()
    logger.info("Admin %s minted an invite key", admin_id)
    return invite


async def list_invites(session: AsyncSession, limit: int = 80) -> list[InviteKey]:
    """Newest first."""
    result = await session.execute(
        select(InviteKey).order_by(InviteKey.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def find_unused_invite(session: AsyncSession, key: str) -> Optional[InviteKey]:
    if not key:
        return None
    result = await session.execute(
        select(InviteKey).where(InviteKey.key == key, InviteKey.used_by.is_(None))
    )
    return result.scalar_one_or_none()


async def claim_invite(session: AsyncSession, key: str, user_id: int) -> bool:
    """Mark key as used by user_id if it is still unused. Does not commit.

    The update is conditional on used_by being NULL, so of two concurrent claims
    only one sees an affected row.
    """
    result = await session.execute(
        update(InviteKey)
        .where(InviteKey.key == key, InviteKey.used_by.is_(None))
        .values(used_by=user_id, used_at=utcnow())
    )
    return result.rowcount == 1
