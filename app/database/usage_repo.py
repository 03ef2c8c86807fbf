"""Repository for the per-user, per-day video counter.

The counter is the only contended row in the system: two create requests for the
same user can race. Increments are therefore single SQL statements; no Python-side
read-modify-write ever touches ``videos_created``.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import DailyUsage

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class UsageRepository:
    """Repository for daily usage counters."""

    @staticmethod
    async def get_count(db: AsyncSession, user_id: uuid.UUID, usage_date: date) -> int:
        """
        Read the number of videos a user created on a given day.

        Args:
            db: Database session
            user_id: Owner of the counter
            usage_date: Calendar day (UTC)

        Returns:
            The count, or 0 when no video was created that day
        """
        result = await db.execute(
            select(DailyUsage.videos_created).where(
                DailyUsage.user_id == user_id,
                DailyUsage.usage_date == usage_date,
            )
        )
        count = result.scalar_one_or_none()
        return count or 0

    @staticmethod
    async def _ensure_row(db: AsyncSession, user_id: uuid.UUID, usage_date: date) -> None:
        dialect = db.get_bind().dialect.name
        insert_fn = _UPSERT_BY_DIALECT.get(dialect)
        if insert_fn is None:
            raise RuntimeError(f"Usage ledger does not support the '{dialect}' dialect")
        stmt = (
            insert_fn(DailyUsage)
            .values(user_id=user_id, usage_date=usage_date, videos_created=0)
            .on_conflict_do_nothing(index_elements=["user_id", "usage_date"])
        )
        await db.execute(stmt)

    @staticmethod
    async def try_increment(
        db: AsyncSession, user_id: uuid.UUID, usage_date: date, limit: int
    ) -> Optional[int]:
        """
        Atomically bump the counter if it is still below ``limit``.

        The check and the increment are one UPDATE, so concurrent callers cannot
        both pass the check. The caller owns the transaction and must commit.

        Args:
            db: Database session
            user_id: Owner of the counter
            usage_date: Calendar day (UTC)
            limit: Daily video limit of the user's plan

        Returns:
            The new count, or None when the limit was already reached
        """
        await UsageRepository._ensure_row(db, user_id, usage_date)
        result = await db.execute(
            update(DailyUsage)
            .where(
                DailyUsage.user_id == user_id,
                DailyUsage.usage_date == usage_date,
                DailyUsage.videos_created < limit,
            )
            .values(videos_created=DailyUsage.videos_created + 1)
            .returning(DailyUsage.videos_created)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def increment(db: AsyncSession, user_id: uuid.UUID, usage_date: date) -> int:
        """Unconditional atomic increment. Returns the new count."""
        await UsageRepository._ensure_row(db, user_id, usage_date)
        result = await db.execute(
            update(DailyUsage)
            .where(
                DailyUsage.user_id == user_id,
                DailyUsage.usage_date == usage_date,
            )
            .values(videos_created=DailyUsage.videos_created + 1)
            .returning(DailyUsage.videos_created)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one()


usage_repository = UsageRepository()
