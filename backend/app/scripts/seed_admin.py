"""Create the default admin account if no admin exists yet"""
import asyncio

from app.core.config import settings
from app.core.database import get_session_local, init_db, close_db
from app.services.user_service import UserService


async def seed_admin():
    await init_db()
    session_local = get_session_local()
    async with session_local() as db:
        users = UserService(db)
        if await users.admin_exists():
            print("Admin user already exists, nothing to do")
            return

        admin = await users.bootstrap_admin(
            settings.DEFAULT_ADMIN_EMAIL,
            settings.DEFAULT_ADMIN_PASSWORD,
            settings.DEFAULT_ADMIN_NAME,
        )
        print(f"Created admin user: {admin.email}")
        print("\nLogin credentials:")
        print(f"Email: {settings.DEFAULT_ADMIN_EMAIL}")
        print(f"Password: {settings.DEFAULT_ADMIN_PASSWORD}")
        print("Change this password after the first login.")
    await close_db()


def main():
    asyncio.run(seed_admin())


if __name__ == "__main__":
    main()
