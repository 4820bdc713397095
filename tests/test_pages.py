"""Tests for page ownership, slug allocation and page edits."""
import asyncio

import pytest
from sqlalchemy import func, select

from core.errors import InvalidSlug, SlugTaken
from core.models import Page, User
from core.models.base import async_session_factory
from core.services import pages
from core.services.pages import (
    clamp,
    ensure_page,
    normalize_slug,
    parse_links,
    sanitize_css,
    unique_slug,
    update_page,
    validate_url,
)


async def _add_user(session, username: str) -> int:
    user = User(username=username, password_hash="x")
    session.add(user)
    await session.commit()
    return user.id


def test_normalize_slug():
    assert normalize_slug("  Hello World! ") == "helloworld"
    assert normalize_slug("a_b-c") == "a_b-c"
    assert normalize_slug("x" * 40) == "x" * 32
    assert normalize_slug(None) == ""


@pytest.mark.parametrize("value, expected", [(-5, 0), ("abc", 0), (0.73, 0.73), (5, 1), ("", 0), (None, 0), ("nan", 0)])
def test_clamp_song_volume(value, expected):
    assert clamp(value, 0, 1) == expected


def test_sanitize_css_strips_forbidden_tokens():
    assert sanitize_css("a{}</style><script>@import url(x)") == "a{}>> url(x)"
    assert sanitize_css("</STYLE><ScRiPt>@IMPORT") == ">>"
    assert len(sanitize_css("b{}" * 3000)) == 6000


def test_validate_url():
    assert validate_url(" https://a.example ") == "https://a.example"
    assert validate_url("HTTP://a.example") == "HTTP://a.example"
    assert validate_url("javascript:alert(1)") == ""
    assert validate_url("https://" + "a" * 500) == ("https://" + "a" * 500)[:400]


def test_parse_links_filters_and_keeps_order():
    form = {
        "label_0": "",
        "url_0": "ftp://x",
        "label_1": "Blog",
        "url_1": "https://b.example",
        "label_2": "",
        "url_2": "https://c.example",
        "label_3": "Labelled but empty",
        "url_3": "",
    }
    assert parse_links(form) == [
        {"label": "Blog", "url": "https://b.example"},
        {"label": "Link", "url": "https://c.example"},
    ]


def test_parse_links_caps_at_fourteen():
    form = {f"url_{i}": f"https://{i}.example" for i in range(20)}
    links = parse_links(form)
    assert len(links) == 14
    assert links[-1]["url"] == "https://13.example"


@pytest.mark.asyncio
async def test_ensure_page_is_idempotent(db):
    uid = await _add_user(db, "alice")
    first = await ensure_page(db, uid, "alice")
    second = await ensure_page(db, uid, "alice")
    assert first.slug == second.slug == "alice"
    assert second.updated_at == first.updated_at
    count = await db.scalar(select(func.count()).select_from(Page).where(Page.user_id == uid))
    assert count == 1


@pytest.mark.asyncio
async def test_ensure_page_defaults(db):
    uid = await _add_user(db, "bob")
    page = await ensure_page(db, uid, "bob")
    assert page.display_name == "bob"
    assert page.bio == "welcome to my page"
    assert page.avatar_url == "/public/default-avatar.png"
    assert page.accent == "#8b5cf6"
    assert page.song_volume == 0.4
    assert page.links == []


@pytest.mark.asyncio
async def test_unique_slug_appends_sequential_suffix(db):
    for name in ("carl", "carl_x", "carl_y"):
        uid = await _add_user(db, name)
        await ensure_page(db, uid, "carl")
    slugs = (await db.execute(select(Page.slug).order_by(Page.user_id))).scalars().all()
    assert slugs == ["carl", "carl2", "carl3"]


@pytest.mark.asyncio
async def test_unique_slug_fallback(db):
    uid = await _add_user(db, "user")
    await ensure_page(db, uid, "!!!")
    assert (await pages.get_page(db, uid)).slug == "user"
    assert await unique_slug(db, "") == "user2"


@pytest.mark.asyncio
async def test_unique_slug_random_suffix_after_sequential_range(db, monkeypatch):
    monkeypatch.setattr(pages, "MAX_SLUG_SUFFIX", 3)
    for i, name in enumerate(("dora", "dora2", "dora3")):
        uid = await _add_user(db, f"dora_{i}")
        await ensure_page(db, uid, name)
    slug = await unique_slug(db, "dora")
    assert slug.startswith("dora-")
    assert len(slug) == len("dora-") + 6
    assert normalize_slug(slug) == slug


@pytest.mark.asyncio
async def test_concurrent_page_creation_yields_distinct_slugs(db):
    """Pages whose base slugs collide get pairwise distinct slugs, even when racing."""
    user_ids = [await _add_user(db, f"eve_{i}") for i in range(6)]
    raw_names = ["Eve", "eve", "EVE!", " eve ", "e.v.e", "eve"]

    async def create(uid, raw):
        async with async_session_factory() as session:
            page = await ensure_page(session, uid, raw)
            return page.slug

    slugs = await asyncio.gather(*(create(uid, raw) for uid, raw in zip(user_ids, raw_names)))
    assert len(set(slugs)) == len(slugs)
    assert all(s.startswith("eve") for s in slugs)


@pytest.mark.asyncio
async def test_update_page_overwrites_fields(db):
    uid = await _add_user(db, "fay")
    await ensure_page(db, uid, "fay")
    page = await update_page(
        db,
        uid,
        {
            "slug": "Fay-Page",
            "display_name": "  " + "F" * 60,
            "bio": "b" * 300,
            "avatar_url": "",
            "accent": "",
            "song_volume": "5",
            "custom_css": "body{}",
        },
    )
    assert page.slug == "fay-page"
    assert page.display_name == "F" * 40
    assert len(page.bio) == 240
    assert page.avatar_url == "/public/default-avatar.png"
    assert page.accent == "#8b5cf6"
    assert page.song_volume == 1
    assert page.custom_css == "body{}"
    assert page.links == []


@pytest.mark.asyncio
async def test_update_page_slug_rules(db):
    a = await _add_user(db, "gus")
    b = await _add_user(db, "hal")
    await ensure_page(db, a, "gus")
    await ensure_page(db, b, "hal")

    with pytest.raises(SlugTaken):
        await update_page(db, b, {"slug": "gus"})
    with pytest.raises(InvalidSlug):
        await update_page(db, b, {"slug": "!"})

    # Reclaiming your own slug is fine, and an omitted slug keeps the current one
    assert (await update_page(db, a, {"slug": "gus"})).slug == "gus"
    assert (await update_page(db, b, {})).slug == "hal"
