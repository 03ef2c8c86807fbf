"""Admin back-office schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_count: int = Field(..., ge=0, alias="userCount")
    video_count: int = Field(..., ge=0, alias="videoCount")
    revenue_total: int = Field(..., ge=0, alias="revenueTotal")


class UpdateRoleRequest(BaseModel):
    role: Literal["user", "admin"]


class ApiConfigUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., max_length=4000)


class ApiConfigEntry(BaseModel):
    """An administrable key with its effective value. Secrets are always masked."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    kind: str
    value: str
    source: Literal["database", "environment", "unset"]
    description: Optional[str] = None
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
