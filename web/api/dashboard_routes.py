"""Owner routes: home redirect and the page editor."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from core.errors import Banned, ConflictError, NotFoundError, ValidationError
from core.models import User
from core.models.base import async_session_factory
from core.services.impersonation import is_impersonating
from core.services.pages import ensure_page, get_page, update_page
from web.api.views import page_view, render, see_other, user_view
from web.auth import get_current_user, get_session_token, require_user

router = APIRouter(tags=["dashboard"])


@router.get("/")
async def home(user: Optional[User] = Depends(get_current_user)):
    """Send visitors to their own page, or to the dashboard before it exists."""
    if not user:
        return see_other("/login")
    if user.banned:
        raise Banned()
    async with async_session_factory() as session:
        page = await get_page(session, user.id)
    return see_other(f"/{page.slug}" if page else "/dashboard")


@router.get("/dashboard")
async def dashboard(
    user: User = Depends(require_user),
    token: Optional[str] = Depends(get_session_token),
):
    """View own page settings."""
    async with async_session_factory() as session:
        page = await ensure_page(session, user.id, user.username)
        impersonating = await is_impersonating(session, token)
    return render(
        "dashboard",
        user=user_view(user),
        page=page_view(page),
        links=page.links,
        error=None,
        ok=None,
        is_admin=user.is_admin,
        impersonating=impersonating,
    )


@router.post("/dashboard")
async def dashboard_save(
    request: Request,
    user: User = Depends(require_user),
    token: Optional[str] = Depends(get_session_token),
):
    """Save own page. Errors are shown on the re-rendered dashboard."""
    form = await request.form()
    error = None
    async with async_session_factory() as session:
        try:
            await update_page(session, user.id, form)
        except (ValidationError, ConflictError, NotFoundError) as e:
            error = str(e)
        page = await ensure_page(session, user.id, user.username)
        impersonating = await is_impersonating(session, token)
    return render(
        "dashboard",
        user=user_view(user),
        page=page_view(page),
        links=page.links,
        error=error,
        ok=None if error else "Saved",
        is_admin=user.is_admin,
        impersonating=impersonating,
    )
