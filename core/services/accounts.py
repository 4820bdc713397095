"""Accounts: invite-gated signup, login, administrator bootstrap, bans."""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from core.errors import (
    AdminExists,
    Banned,
    ConflictError,
    InvalidInvite,
    InvalidLogin,
    InvalidUsername,
    ProtectedAccount,
    SignupFailed,
    UsernameTaken,
    WeakPassword,
)
from core.models import Page, User
from core.models.user import ROLE_ADMIN
from core.passwords import hash_password, verify_password
from core.services.invites import claim_invite, find_unused_invite
from core.services.pages import ensure_page
from core.services.sessions import create_session

logger = logging.getLogger("linkpage.accounts")

MIN_PASSWORD_LENGTH = 6
BAN_REASON_MAX_LENGTH = 120

_USERNAME_RE = re.compile(r"^[a-z0-9_]{3,20}$")


def normalize_username(value: Any) -> str:
    return str(value or "").lower().strip()


def validate_username(value: Any) -> Optional[str]:
    username = normalize_username(value)
    return username if _USERNAME_RE.match(username) else None


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def signup(session: AsyncSession, username: Any, password: Any, invite: Any) -> tuple[User, str]:
    """Create an account with an unused invite key. Returns (user, session token).

    The user insert and the invite claim commit together: if the key was spent by
    a concurrent signup in the meantime, the new user is rolled back as well.
    Page and session are created afterwards; a missing page is recreated on the
    next login.
    """
    name = validate_username(username)
    if not name:
        raise InvalidUsername()
    password = str(password or "")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPassword()
    key = str(invite or "").strip()
    if not await find_unused_invite(session, key):
        raise InvalidInvite()

    user = User(username=name, password_hash=hash_password(password))
    session.add(user)
    try:
        await session.flush()
        claimed = await claim_invite(session, key, user.id)
        if not claimed:
            await session.rollback()
            logger.info("Invite key spent concurrently; rejecting signup of %s", name)
            raise InvalidInvite()
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise UsernameTaken() from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Signup of %s failed", name)
        raise SignupFailed() from e
    user_id = user.id
    logger.info("User %s signed up (id %s)", name, user_id)

    # ensure_page rolls back on a slug race, which expires `user`
    try:
        await ensure_page(session, user_id, name)
        token = await create_session(session, user_id)
        await session.refresh(user)
    except (SQLAlchemyError, ConflictError) as e:
        logger.exception("Post-signup setup for user %s failed", user_id)
        raise SignupFailed() from e
    return user, token


async def admin_exists(session: AsyncSession) -> bool:
    result = await session.execute(select(User.id).where(User.role == ROLE_ADMIN).limit(1))
    return result.first() is not None


def _is_bootstrap_login(username: str, password: str) -> bool:
    return bool(
        config.INITIAL_ADMIN_PASSWORD
        and username == normalize_username(config.INITIAL_ADMIN_USERNAME)
        and password == config.INITIAL_ADMIN_PASSWORD
    )


async def login(session: AsyncSession, username: Any, password: Any) -> tuple[User, str]:
    """Check credentials and open a session. Returns (user, session token).

    Unknown usernames and wrong passwords raise the same InvalidLogin. A banned
    account is reported as Banned before the password is checked.
    """
    name = normalize_username(username)
    password = str(password or "")
    user = await get_user_by_username(session, name)
    if not user:
        # Bootstrap: only while the store has no administrator yet
        if not _is_bootstrap_login(name, password) or await admin_exists(session):
            raise InvalidLogin()
        user = await create_admin(session, name, password)
    if user.banned:
        raise Banned()
    if not verify_password(password, user.password_hash):
        raise InvalidLogin()
    user_id = user.id
    await ensure_page(session, user_id, user.username)
    token = await create_session(session, user_id)
    await session.refresh(user)
    logger.info("User %s logged in", user_id)
    return user, token


async def create_admin(session: AsyncSession, username: str, password: str) -> User:
    """Create the administrator account.

    There is exactly one administrator: raises AdminExists once one has been
    created, and UsernameTaken if the name belongs to a regular user.
    """
    if await admin_exists(session):
        raise AdminExists()
    user = User(username=username, password_hash=hash_password(password), role=ROLE_ADMIN)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise UsernameTaken() from e
    logger.info("Administrator %s created (id %s)", username, user.id)
    return user


async def set_banned(session: AsyncSession, user_id: int, banned: bool, reason: str = "") -> Optional[User]:
    """Ban or unban a user. Existing sessions are kept; requests with them get 403.

    Returns None if the user does not exist. Administrators cannot be targeted.
    """
    user = await session.get(User, user_id)
    if not user:
        return None
    if user.is_admin:
        raise ProtectedAccount()
    user.banned = banned
    user.ban_reason = str(reason or "")[:BAN_REASON_MAX_LENGTH] if banned else ""
    await session.commit()
    logger.info("User %s %s", user_id, "banned" if banned else "unbanned")
    return user


async def list_users(session: AsyncSession, limit: int = 1000) -> list[tuple[User, Optional[str]]]:
    """All users by id with their page slug (None if no page yet)."""
    result = await session.execute(
        select(User, Page.slug)
        .outerjoin(Page, Page.user_id == User.id)
        .order_by(User.id.asc())
        .limit(limit)
    )
    return [(user, slug) for user, slug in result.all()]
