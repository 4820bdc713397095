"""Public profile pages at /<slug>. Included last: the path matches any single segment."""
from __future__ import annotations

from fastapi import APIRouter

from core.errors import NotFoundError
from core.models.base import async_session_factory
from core.services.pages import get_page_by_slug, normalize_slug
from web.api.views import page_view, render

router = APIRouter(tags=["profiles"])


@router.get("/{slug}")
async def profile(slug: str):
    async with async_session_factory() as session:
        page = await get_page_by_slug(session, normalize_slug(slug))
    if not page:
        raise NotFoundError("Not found")
    return render("profile", page=page_view(page), links=page.links)
