"""Admin routes: invite keys, user bans, impersonation."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import PlainTextResponse

from core.errors import ProtectedAccount
from core.models import User
from core.models.base import async_session_factory
from core.services.accounts import list_users, set_banned
from core.services.impersonation import impersonate, return_from_impersonation
from core.services.invites import list_invites, mint_invite
from web.api.views import account_view, invite_view, parse_id, render, see_other, user_view
from web.auth import get_session_token, require_admin_user, require_user, set_session_cookie

router = APIRouter(prefix="/admin", tags=["admin"])


def _refuse() -> PlainTextResponse:
    return PlainTextResponse("no", status_code=400)


@router.get("")
async def admin_home(admin: User = Depends(require_admin_user)):
    return see_other("/admin/keys")


@router.get("/keys")
async def admin_keys(admin: User = Depends(require_admin_user)):
    """Most recent invite keys (admin only)."""
    async with async_session_factory() as session:
        keys = await list_invites(session)
    return render("admin_keys", user=user_view(admin), keys=[invite_view(k) for k in keys])


@router.post("/keys")
async def admin_mint_key(admin: User = Depends(require_admin_user)):
    """Mint a new invite key (admin only)."""
    async with async_session_factory() as session:
        await mint_invite(session, admin.id)
    return see_other("/admin/keys")


@router.get("/users")
async def admin_users(admin: User = Depends(require_admin_user)):
    """All users with their slugs (admin only)."""
    async with async_session_factory() as session:
        rows = await list_users(session)
    return render("admin_users", user=user_view(admin), users=[account_view(u, slug) for u, slug in rows])


@router.post("/users/{user_id}/ban")
async def admin_ban(user_id: str, reason: str = Form(""), admin: User = Depends(require_admin_user)):
    target_id = parse_id(user_id)
    if not target_id:
        return _refuse()
    try:
        async with async_session_factory() as session:
            await set_banned(session, target_id, True, reason)
    except ProtectedAccount:
        return _refuse()
    return see_other("/admin/users")


@router.post("/users/{user_id}/unban")
async def admin_unban(user_id: str, admin: User = Depends(require_admin_user)):
    target_id = parse_id(user_id)
    if not target_id:
        return _refuse()
    try:
        async with async_session_factory() as session:
            await set_banned(session, target_id, False)
    except ProtectedAccount:
        return _refuse()
    return see_other("/admin/users")


@router.post("/impersonate/{user_id}")
async def admin_impersonate(user_id: str, admin: User = Depends(require_admin_user)):
    """Switch the browser to a new session as the target user. The admin's session stays valid."""
    target_id = parse_id(user_id)
    if not target_id:
        return _refuse()
    async with async_session_factory() as session:
        token = await impersonate(session, admin.id, target_id)
    response = see_other("/dashboard")
    set_session_cookie(response, token)
    return response


@router.post("/return")
async def admin_return(
    user: User = Depends(require_user),
    token: Optional[str] = Depends(get_session_token),
):
    """End impersonation and continue as the admin with a fresh session."""
    async with async_session_factory() as session:
        new_token = await return_from_impersonation(session, token)
    if not new_token:
        return see_other("/dashboard")
    response = see_other("/admin/users")
    set_session_cookie(response, new_token)
    return response
