"""Authentication for the web app: signed session cookie, per-request user, role gates."""
from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Cookie, Depends
from fastapi.responses import Response

import config
from core.errors import Banned, ForbiddenError
from core.models import User
from core.models.base import async_session_factory
from core.services.sessions import resolve_user

SESSION_COOKIE = "session"


class LoginRequired(Exception):
    """Raised by require_user for anonymous requests; answered with a redirect to /login."""


def sign_session_token(token: str) -> str:
    return jwt.encode({"sid": token}, config.COOKIE_SECRET, algorithm=config.COOKIE_ALGORITHM)


def unsign_session_cookie(value: str) -> Optional[str]:
    """Return the session token inside a signed cookie, or None if it was tampered with."""
    try:
        payload = jwt.decode(value, config.COOKIE_SECRET, algorithms=[config.COOKIE_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    token = payload.get("sid")
    return token if isinstance(token, str) else None


def set_session_cookie(response: Response, token: str) -> None:
    """HTTP-only, same-site, no explicit expiry."""
    response.set_cookie(
        SESSION_COOKIE,
        sign_session_token(token),
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="lax")


async def get_session_token(
    session_cookie: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
) -> Optional[str]:
    """Session token from the request's signed cookie, if any."""
    if not session_cookie:
        return None
    return unsign_session_cookie(session_cookie)


async def get_current_user(token: Optional[str] = Depends(get_session_token)) -> Optional[User]:
    """Return current user from the session cookie, or None if not authenticated."""
    async with async_session_factory() as session:
        return await resolve_user(session, token)


async def require_user(
    user: Optional[User] = Depends(get_current_user),
) -> User:
    """Require a logged-in, non-banned user. Anonymous requests are sent to /login."""
    if not user:
        raise LoginRequired()
    if user.banned:
        raise Banned()
    return user


def require_admin(user: User) -> User:
    """Require admin role. Raises 403 if insufficient."""
    if not user.is_admin:
        raise ForbiddenError("Forbidden")
    return user


async def require_admin_user(
    user: User = Depends(require_user),
) -> User:
    """Dependency: require logged-in admin."""
    return require_admin(user)
