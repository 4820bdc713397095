"""Database models."""
from core.models.base import Base, async_session_factory, init_db
from core.models.user import User
from core.models.page import Page
from core.models.invite_key import InviteKey
from core.models.auth_session import AuthSession, Impersonation  # noqa: F401 - for metadata

__all__ = [
    "Base",
    "User",
    "Page",
    "InviteKey",
    "AuthSession",
    "Impersonation",
    "async_session_factory",
    "init_db",
]
