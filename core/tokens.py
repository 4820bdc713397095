"""Unguessable identifiers for sessions, invite keys and slug suffixes."""
from __future__ import annotations

import secrets
import string

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"

SESSION_TOKEN_LENGTH = 32
INVITE_KEY_LENGTH = 10
SLUG_SUFFIX_LENGTH = 6


def random_token(length: int) -> str:
    """Return `length` characters drawn from the URL-safe alphabet with a CSPRNG."""
    return "".join(secrets.choice(URL_SAFE_ALPHABET) for _ in range(length))
