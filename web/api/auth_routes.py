"""Signup, login and logout routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Form

from core.errors import Banned, ConflictError, TransientStoreError, ValidationError
from core.models.base import async_session_factory
from core.services.accounts import login, signup
from core.services.sessions import destroy_session
from web.api.views import render, see_other
from web.auth import clear_session_cookie, get_session_token, set_session_cookie

router = APIRouter(tags=["auth"])


@router.get("/signup")
async def signup_form():
    return render("signup", error=None)


@router.post("/signup")
async def signup_submit(
    username: str = Form(""),
    password: str = Form(""),
    invite: str = Form(""),
):
    """Create an account from an invite key, then sign in."""
    try:
        async with async_session_factory() as session:
            user, token = await signup(session, username, password, invite)
    except (ValidationError, ConflictError, TransientStoreError) as e:
        return render("signup", error=str(e), username=username, invite=invite)
    response = see_other("/dashboard")
    set_session_cookie(response, token)
    return response


@router.get("/login")
async def login_form():
    return render("login", error=None)


@router.post("/login")
async def login_submit(
    username: str = Form(""),
    password: str = Form(""),
):
    """Check credentials and start a session."""
    try:
        async with async_session_factory() as session:
            user, token = await login(session, username, password)
    except (ValidationError, ConflictError, Banned) as e:
        return render("login", error=str(e), username=username)
    response = see_other("/dashboard")
    set_session_cookie(response, token)
    return response


@router.post("/logout")
async def logout(token: Optional[str] = Depends(get_session_token)):
    """Destroy the current session (and its impersonation, if any)."""
    async with async_session_factory() as session:
        await destroy_session(session, token)
    response = see_other("/login")
    clear_session_cookie(response)
    return response
