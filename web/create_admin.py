"""Create the administrator account. Run from project root: python web/create_admin.py <username>

The password comes from INITIAL_ADMIN_PASSWORD, or is prompted for.
"""
import asyncio
import getpass
import sys
from pathlib import Path

# Add project root to path so core imports work
_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_root))

import config
from core.errors import AdminExists, UsernameTaken
from core.models.base import async_session_factory, init_db
from core.services.accounts import create_admin, get_user_by_username, normalize_username


async def _main(username: str, password: str) -> int:
    await init_db()
    async with async_session_factory() as session:
        existing = await get_user_by_username(session, username)
        if existing:
            print("user already exists with id", existing.id)
            return 0
        try:
            user = await create_admin(session, username, password)
        except AdminExists:
            print("an administrator already exists")
            return 1
        except UsernameTaken:
            print("user already exists")
            return 1
    print("admin created with id", user.id)
    return 0


if __name__ == "__main__":
    name = normalize_username(sys.argv[1] if len(sys.argv) > 1 else config.INITIAL_ADMIN_USERNAME)
    secret = config.INITIAL_ADMIN_PASSWORD or getpass.getpass("Password: ")
    if len(secret) < 6:
        sys.exit("Password must be 6+ chars")
    sys.exit(asyncio.run(_main(name, secret)))
