"""One-way password storage.

Hashes are bcrypt at ``config.BCRYPT_ROUNDS``. bcrypt ignores everything past
its first 72 input bytes, so longer passwords are reduced to their SHA-256 hex
digest before hashing; otherwise two long passwords sharing a prefix would
verify against each other.
"""
from __future__ import annotations

import hashlib

from passlib.context import CryptContext

import config

BCRYPT_MAX_BYTES = 72

_context = CryptContext(schemes=["bcrypt"], bcrypt__rounds=config.BCRYPT_ROUNDS)


def _bcrypt_input(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) <= BCRYPT_MAX_BYTES:
        return password
    return hashlib.sha256(raw).hexdigest()


def hash_password(password: str) -> str:
    return _context.hash(_bcrypt_input(password))


def verify_password(password: str, password_hash: str) -> bool:
    """True if password matches. A stored value that is not a bcrypt hash never matches."""
    try:
        return _context.verify(_bcrypt_input(password), password_hash)
    except ValueError:
        return False
