"""Seed database with initial data (plans, API config keys, admin user)."""

import asyncio
import os

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.db import _ensure_async_url
from app.core.config import settings
from app.core.security import hash_password
from app.database.seed import seed_api_configs, seed_plans
from app.database.user_repo import user_repository
from app.models.models import User, UserRole
from app.services.subscription_service import SubscriptionService


async def seed_admin_user(session: AsyncSession) -> None:
    """Create an admin user on the free plan if one is configured."""
    admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@vidgen.local")
    admin_password = os.getenv("SEED_ADMIN_PASSWORD", "admin123456")

    if await user_repository.get_user_by_email(session, admin_email):
        print(f"✓ Admin user already exists: {admin_email}")
        return

    admin = await user_repository.create_user(
        session,
        User(
            email=admin_email.lower(),
            password_hash=hash_password(admin_password),
            name="Administrator",
            role=UserRole.ADMIN,
        ),
    )
    await SubscriptionService.assign_free_plan(session, admin)
    await session.commit()

    print(f"✓ Created admin user: {admin_email}")


async def main() -> None:
    """Run all seed operations."""
    print("🌱 Seeding database...")

    engine = create_async_engine(_ensure_async_url(settings.DATABASE_URL), echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session() as session:
        plans = await seed_plans(session)
        print(f"✓ Plans: {', '.join(plan.name for plan in plans)}")
        await seed_api_configs(session)
        print("✓ API config keys registered")
        await seed_admin_user(session)

    await engine.dispose()

    print("✅ Database seeding completed!")


if __name__ == "__main__":
    asyncio.run(main())
