"""Repository for admin-managed API configuration rows."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import ApiConfig


class ApiConfigRepository:
    """Repository for the flat name -> value configuration table."""

    @staticmethod
    async def list_configs(db: AsyncSession) -> list[ApiConfig]:
        result = await db.execute(select(ApiConfig).order_by(ApiConfig.name.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_config(db: AsyncSession, name: str) -> Optional[ApiConfig]:
        result = await db.execute(select(ApiConfig).where(ApiConfig.name == name))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_values(db: AsyncSession) -> dict[str, Optional[str]]:
        """Return every stored override keyed by name."""
        result = await db.execute(select(ApiConfig.name, ApiConfig.value))
        return {name: value for name, value in result.all()}

    @staticmethod
    async def upsert_config(
        db: AsyncSession,
        name: str,
        value: str,
        updated_by: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
    ) -> ApiConfig:
        """
        Create or overwrite a configuration row and commit.

        Args:
            db: Database session
            name: Configuration key
            value: New raw value
            updated_by: Admin making the change
            description: Description stored when the row is first created

        Returns:
            The stored ApiConfig row
        """
        config = await ApiConfigRepository.get_config(db, name)
        if config is None:
            config = ApiConfig(name=name, value=value, description=description, updated_by=updated_by)
            db.add(config)
        else:
            config.value = value
            config.updated_by = updated_by
        await db.commit()
        await db.refresh(config)
        return config


api_config_repository = ApiConfigRepository()
