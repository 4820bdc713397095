"""Admin impersonation: borrow another user's identity and hand it back."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import NotFoundError
from core.models import AuthSession, Impersonation, User
from core.tokens import SESSION_TOKEN_LENGTH, random_token

logger = logging.getLogger("linkpage.admin")


async def impersonate(session: AsyncSession, admin_id: int, target_user_id: int) -> str:
    """Open a session as target_user_id on behalf of admin_id and return its token.

    The admin's own session is left alone; the new token is an additional session
    marked as borrowed.
    """
    target = await session.get(User, target_user_id)
    if not target:
        raise NotFoundError("not found")
    token = random_token(SESSION_TOKEN_LENGTH)
    session.add(AuthSession(token=token, user_id=target.id))
    session.add(Impersonation(token=token, admin_user_id=admin_id))
    await session.commit()
    logger.info("Admin %s started impersonating user %s", admin_id, target.id)
    return token


async def is_impersonating(session: AsyncSession, token: Optional[str]) -> bool:
    if not token:
        return False
    result = await session.execute(select(Impersonation.token).where(Impersonation.token == token))
    return result.scalar_one_or_none() is not None


async def return_from_impersonation(session: AsyncSession, token: Optional[str]) -> Optional[str]:
    """End the impersonation behind token.

    Destroys the borrowed session and its impersonation record, then issues a brand-new
    session for the recorded admin and returns that token. Returns None (and changes
    nothing) when token is not an impersonation session.
    """
    if not token:
        return None
    result = await session.execute(select(Impersonation.admin_user_id).where(Impersonation.token == token))
    admin_id = result.scalar_one_or_none()
    if admin_id is None:
        return None
    await session.execute(delete(AuthSession).where(AuthSession.token == token))
    await session.execute(delete(Impersonation).where(Impersonation.token == token))
    new_token = random_token(SESSION_TOKEN_LENGTH)
    session.add(AuthSession(token=new_token, user_id=admin_id))
    await session.commit()
    logger.info("Admin %s returned from impersonation", admin_id)
    return new_token
