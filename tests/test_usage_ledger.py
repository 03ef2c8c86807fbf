from datetime import date

from app.core.db import get_session_factory
from app.database.usage_repo import usage_repository

TODAY = date(2026, 3, 14)


async def test_count_is_zero_without_a_row(session, make_user):
    user = await make_user()
    assert await usage_repository.get_count(session, user.id, TODAY) == 0


async def test_try_increment_stops_at_the_limit(session, make_user):
    user = await make_user()

    assert await usage_repository.try_increment(session, user.id, TODAY, 2) == 1
    assert await usage_repository.try_increment(session, user.id, TODAY, 2) == 2
    assert await usage_repository.try_increment(session, user.id, TODAY, 2) is None
    await session.commit()

    assert await usage_repository.get_count(session, user.id, TODAY) == 2


async def test_days_are_counted_separately(session, make_user):
    user = await make_user()
    await usage_repository.increment(session, user.id, TODAY)
    await usage_repository.increment(session, user.id, date(2026, 3, 15))
    await session.commit()

    assert await usage_repository.get_count(session, user.id, TODAY) == 1
    assert await usage_repository.get_count(session, user.id, date(2026, 3, 15)) == 1


async def test_a_stale_read_cannot_take_the_last_slot(make_user):
    user = await make_user()
    factory = get_session_factory()

    async with factory() as setup:
        await usage_repository.increment(setup, user.id, TODAY)
        await setup.commit()

    # Both requests saw one video created against a limit of two
    async with factory() as first, factory() as second:
        assert await usage_repository.get_count(first, user.id, TODAY) == 1
        assert await usage_repository.get_count(second, user.id, TODAY) == 1

        assert await usage_repository.try_increment(first, user.id, TODAY, 2) == 2
        await first.commit()

        assert await usage_repository.try_increment(second, user.id, TODAY, 2) is None
        await second.rollback()

    async with factory() as check:
        assert await usage_repository.get_count(check, user.id, TODAY) == 2
