"""Error taxonomy shared by services and the web layer.

Each error carries the message shown to the user. Form routes re-render the
form with ``str(error)``; everything else is answered by the exception
handlers in ``web.api.main`` with a fixed status code.
"""
from __future__ import annotations


class LinkpageError(Exception):
    """Base class for all application errors."""

    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class ValidationError(LinkpageError):
    """Malformed input. The form is rendered again with the message."""

    message = "Invalid input"


class NotFoundError(LinkpageError):
    """Unknown resource (404)."""

    message = "Not found"


class ForbiddenError(LinkpageError):
    """Authorization failure (403)."""

    message = "Forbidden"


class ConflictError(LinkpageError):
    """Uniqueness violation, reported like a validation message."""

    message = "Already taken"


class TransientStoreError(LinkpageError):
    """Unexpected storage failure. Not retried."""

    message = "Storage failure"


class InvalidUsername(ValidationError):
    message = "Username: 3-20 chars, a-z 0-9 _"


class WeakPassword(ValidationError):
    message = "Password must be 6+ chars"


class InvalidInvite(ValidationError):
    message = "Invalid invite key"


class InvalidLogin(ValidationError):
    message = "Invalid login"


class InvalidSlug(ValidationError):
    message = "Slug must be 2-32: a-z 0-9 _ -"


class ProtectedAccount(ValidationError):
    message = "no"


class UsernameTaken(ConflictError):
    message = "Username already taken"


class SlugTaken(ConflictError):
    message = "That slug is taken"


class Banned(ForbiddenError):
    message = "Banned"


class SignupFailed(TransientStoreError):
    message = "Signup failed"


class AdminExists(ConflictError):
    message = "An administrator already exists"
