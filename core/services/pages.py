"""Page registry: lazy page creation, globally unique slugs, self-service edits."""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, InvalidSlug, NotFoundError, SlugTaken
from core.models import Page
from core.models.base import utcnow
from core.tokens import SLUG_SUFFIX_LENGTH, random_token

logger = logging.getLogger("linkpage.pages")

DEFAULT_AVATAR = "/public/default-avatar.png"
DEFAULT_ACCENT = "#8b5cf6"
DEFAULT_BIO = "welcome to my page"
DEFAULT_SONG_VOLUME = 0.4

MAX_LINKS = 14
MAX_SLUG_SUFFIX = 9999
PAGE_INSERT_ATTEMPTS = 8  # retries after losing a slug race at insert time
CSS_MAX_LENGTH = 6000

_SLUG_RE = re.compile(r"^[a-z0-9_-]{2,32}$")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9_-]")
_URL_SCHEME_RE = re.compile(r"^https?://", re.I)
_CSS_FORBIDDEN = [
    re.compile(r"</style", re.I),
    re.compile(r"<script", re.I),
    re.compile(r"@import", re.I),
]


def normalize_slug(value: Any) -> str:
    """Lowercase, keep only [a-z0-9_-], truncate to 32 chars."""
    return _SLUG_STRIP_RE.sub("", str(value or "").lower().strip())[:32]


def validate_slug(value: Any) -> Optional[str]:
    slug = normalize_slug(value)
    return slug if _SLUG_RE.match(slug) else None


def validate_url(value: Any) -> str:
    """Return the URL capped at 400 chars, or "" unless it is http(s)."""
    url = str(value or "").strip()
    if not url or not _URL_SCHEME_RE.match(url):
        return ""
    return url[:400]


def clamp(value: Any, low: float, high: float) -> float:
    """Clamp value into [low, high]; anything non-numeric becomes low."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    if math.isnan(number):
        return low
    return max(low, min(high, number))


def sanitize_css(css: Any) -> str:
    """Strip </style, <script and @import (any case), then cap the length."""
    css = str(css or "")
    for pattern in _CSS_FORBIDDEN:
        css = pattern.sub("", css)
    return css[:CSS_MAX_LENGTH]


def _field(form: Mapping[str, Any], name: str) -> str:
    value = form.get(name)
    return "" if value is None else str(value)


def parse_links(form: Mapping[str, Any]) -> list[dict]:
    """Collect label_N/url_N pairs in submission order.

    Entries without a valid http(s) URL are dropped even when labelled; a missing
    label becomes "Link".
    """
    links = []
    for i in range(MAX_LINKS):
        label = _field(form, f"label_{i}").strip()[:32]
        url = validate_url(_field(form, f"url_{i}"))
        if not url:
            continue
        links.append({"label": label or "Link", "url": url})
    return links


async def get_page(session: AsyncSession, user_id: int) -> Optional[Page]:
    result = await session.execute(select(Page).where(Page.user_id == user_id))
    return result.scalar_one_or_none()


async def get_page_by_slug(session: AsyncSession, slug: str) -> Optional[Page]:
    result = await session.execute(select(Page).where(Page.slug == slug))
    return result.scalar_one_or_none()


async def _slug_exists(session: AsyncSession, slug: str) -> bool:
    result = await session.execute(select(Page.user_id).where(Page.slug == slug).limit(1))
    return result.first() is not None


async def unique_slug(session: AsyncSession, base: Any) -> str:
    """Find a free slug: base, then base2 .. base9999, then base-<random6>."""
    base = normalize_slug(base) or "user"
    if not await _slug_exists(session, base):
        return base
    for i in range(2, MAX_SLUG_SUFFIX + 1):
        candidate = f"{base}{i}"
        if not await _slug_exists(session, candidate):
            return candidate
    while True:
        candidate = f"{base}-{random_token(SLUG_SUFFIX_LENGTH).lower()}"
        if not await _slug_exists(session, candidate):
            return candidate


async def ensure_page(session: AsyncSession, user_id: int, username: str) -> Page:
    """Return the user's page, creating it with a unique slug if it doesn't exist yet.

    Another writer can take the chosen slug between the lookup and the insert; the
    store rejects the insert and we look again.
    """
    for _ in range(PAGE_INSERT_ATTEMPTS):
        page = await get_page(session, user_id)
        if page:
            return page
        slug = await unique_slug(session, username)
        page = Page(
            user_id=user_id,
            slug=slug,
            display_name=username[:40],
            bio=DEFAULT_BIO,
            avatar_url=DEFAULT_AVATAR,
            bg_url="",
            accent=DEFAULT_ACCENT,
            song_url="",
            song_volume=DEFAULT_SONG_VOLUME,
            links_json="[]",
            custom_css="",
            updated_at=utcnow(),
        )
        session.add(page)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            logger.info("Slug %s was claimed concurrently; retrying for user %s", slug, user_id)
            continue
        logger.info("Created page /%s for user %s", slug, user_id)
        return page
    raise ConflictError("Could not allocate a unique slug")


async def update_page(session: AsyncSession, user_id: int, form: Mapping[str, Any]) -> Page:
    """Overwrite the user's page from submitted form fields."""
    page = await get_page(session, user_id)
    if not page:
        raise NotFoundError("No page")

    slug = validate_slug(_field(form, "slug") or page.slug)
    if not slug:
        raise InvalidSlug()
    owner = await get_page_by_slug(session, slug)
    if owner and owner.user_id != user_id:
        raise SlugTaken()

    page.slug = slug
    page.display_name = _field(form, "display_name").strip()[:40]
    page.bio = _field(form, "bio").strip()[:240]
    page.avatar_url = _field(form, "avatar_url").strip()[:400] or DEFAULT_AVATAR
    page.bg_url = _field(form, "bg_url").strip()[:400]
    page.accent = (_field(form, "accent") or DEFAULT_ACCENT).strip()[:16]
    page.song_url = _field(form, "song_url").strip()[:400]
    page.song_volume = clamp(form.get("song_volume"), 0, 1)
    page.links = parse_links(form)
    page.custom_css = sanitize_css(form.get("custom_css"))
    page.updated_at = utcnow()
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise SlugTaken() from e
    return page
