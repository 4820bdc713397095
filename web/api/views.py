"""View rendering and shared response helpers.

Views are returned as JSON documents naming the view; a template engine can
replace render() without touching the routes.
"""
from __future__ import annotations

from typing import Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse

from core.models import InviteKey, Page, User


def render(view: str, **context) -> JSONResponse:
    return JSONResponse({"view": view, **jsonable_encoder(context)})


def see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def parse_id(value: str) -> Optional[int]:
    """Positive integer from a path segment, else None."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def user_view(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "is_admin": user.is_admin,
    }


def page_view(page: Page) -> dict:
    return {
        "slug": page.slug,
        "display_name": page.display_name,
        "bio": page.bio,
        "avatar_url": page.avatar_url,
        "bg_url": page.bg_url,
        "accent": page.accent,
        "song_url": page.song_url,
        "song_volume": page.song_volume,
        "custom_css": page.custom_css,
        "updated_at": page.updated_at,
    }


def invite_view(invite: InviteKey) -> dict:
    return {
        "key": invite.key,
        "created_by": invite.created_by,
        "used_by": invite.used_by,
        "used_at": invite.used_at,
        "created_at": invite.created_at,
    }


def account_view(user: User, slug: Optional[str]) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "banned": user.banned,
        "ban_reason": user.ban_reason,
        "created_at": user.created_at,
        "slug": slug,
    }
