"""
Create (or promote) an administrator account.

Usage:
    python -m app.scripts.create_admin admin@example.com admin_user 'a-strong-password'
"""
import argparse
import asyncio

from sqlalchemy import select

from app.db.session import AsyncSessionLocal
from app.models.user import User, UserRole
from app.schemas.user import UserCreate
from app.services.auth_service import register_user


async def create_admin(
    email: str,
    username: str,
    password: str,
    session_factory=AsyncSessionLocal,
) -> User:
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            user.role = UserRole.ADMIN.value
            print(f"Promoted existing user {email} to admin")
        else:
            user = await register_user(
                db,
                UserCreate(email=email, username=username, password=password),
                role=UserRole.ADMIN,
            )
            print(f"Created admin {email} (id={user.id})")

        await db.commit()
        return user


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("email")
    parser.add_argument("username")
    parser.add_argument("password")
    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.username, args.password))


if __name__ == "__main__":
    main()
