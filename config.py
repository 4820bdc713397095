"""Configuration for Linkpage."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'linkpage.db'}",
)

# Session cookie signing secret
COOKIE_SECRET = os.getenv("COOKIE_SECRET", "dev-secret")
COOKIE_ALGORITHM = "HS256"

# bcrypt cost factor (4-31). Tests lower it.
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# First login with these credentials creates the administrator account
INITIAL_ADMIN_USERNAME = os.getenv("INITIAL_ADMIN_USERNAME", "admin")
INITIAL_ADMIN_PASSWORD = os.getenv("INITIAL_ADMIN_PASSWORD", "")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
