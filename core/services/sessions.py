"""Session tokens: issue, resolve, destroy."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.models import AuthSession, Impersonation, User
from core.tokens import SESSION_TOKEN_LENGTH, random_token

logger = logging.getLogger("linkpage.sessions")


async def create_session(session: AsyncSession, user_id: int) -> str:
    """Persist a fresh session for user_id and return its token."""
    token = random_token(SESSION_TOKEN_LENGTH)
    session.add(AuthSession(token=token, user_id=user_id))
    await session.commit()
    return token


async def resolve_user(session: AsyncSession, token: Optional[str]) -> Optional[User]:
    """Return the user owning token, or None if the token or its user is unknown."""
    if not token:
        return None
    record = await session.get(AuthSession, token)
    if not record:
        return None
    return await session.get(User, record.user_id)


async def destroy_session(session: AsyncSession, token: Optional[str]) -> None:
    """Delete the session and any impersonation paired with it. Unknown tokens are a no-op."""
    if not token:
        return
    record = await session.get(AuthSession, token)
    await session.execute(delete(AuthSession).where(AuthSession.token == token))
    await session.execute(delete(Impersonation).where(Impersonation.token == token))
    await session.commit()
    if record:
        logger.info("Session closed for user %s", record.user_id)
