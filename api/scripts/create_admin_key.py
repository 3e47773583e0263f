"""Create an administrator API key.

The admin endpoints (settings, diagnostics, key issuance) all require an
admin key, so the first one has to be created out of band. The raw key is
printed once; only its SHA-256 hash is stored.

Usage:
    cd api
    python -m scripts.create_admin_key --email admin@example.com
"""
import argparse
import asyncio
import secrets
import sys
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Support running from both project root and api/ directory
_api_root = Path(__file__).parent.parent  # api/
if str(_api_root) not in sys.path:
    sys.path.insert(0, str(_api_root))

from app.config import settings
from app.models.user import User
from app.routers.auth import hash_api_key


async def create_admin_key(email: str, display_name: str | None) -> None:
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async with session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none() is not None:
            print(f"Error: a user with email {email} already exists", file=sys.stderr)
            await engine.dispose()
            sys.exit(1)

        raw_key = secrets.token_urlsafe(32)
        user = User(
            email=email,
            display_name=display_name,
            api_key_hash=hash_api_key(raw_key),
            is_admin=True,
        )
        session.add(user)
        await session.commit()

    await engine.dispose()

    print(f"Admin user created: {user.id}")
    print(f"API key (shown once): {raw_key}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a RatingSchema administrator API key")
    parser.add_argument("--email", required=True, help="Email address of the administrator")
    parser.add_argument("--display-name", default=None, help="Optional display name")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(create_admin_key(args.email, args.display_name))
