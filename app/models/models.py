from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.models.base import Base


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class VideoFormat(str, enum.Enum):
    STANDARD_16_9 = "standard_16_9"
    YOUTUBE_SHORTS = "youtube_shorts"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"


class VideoStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not VideoStatus.PROCESSING


class Resolution(str, enum.Enum):
    HD = "720p"
    FULL_HD = "1080p"
    UHD = "4K"

    @property
    def rank(self) -> int:
        return _RESOLUTION_RANK[self]


_RESOLUTION_RANK = {Resolution.HD: 0, Resolution.FULL_HD: 1, Resolution.UHD: 2}


class User(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "tbl_users"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(Text)
    name: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
        server_default=UserRole.USER.value,
    )
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))

    subscriptions: Mapped[list["Subscription"]] = relationship("Subscription", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class SubscriptionPlan(Base):
    """Catalog entry seeded at bootstrap and read-only afterwards."""

    __tablename__ = "tbl_mstr_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    price_monthly: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_video_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_limit: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds
    resolution: Mapped[Resolution] = mapped_column(
        Enum(Resolution, name="resolution", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    has_watermark: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    custom_ai_models: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    subscriptions: Mapped[list["Subscription"]] = relationship("Subscription", back_populates="plan")


class Subscription(UUIDMixin, Base):
    """Binds a user to one plan. At most one active row per user."""

    __tablename__ = "tbl_subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_user", "user_id"),
        Index(
            "uq_subscriptions_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active"),
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    plan_id: Mapped[int] = mapped_column(Integer, ForeignKey("tbl_mstr_plans.id"), nullable=False)
    start_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    user: Mapped["User"] = relationship("User", back_populates="subscriptions")
    plan: Mapped["SubscriptionPlan"] = relationship("SubscriptionPlan", back_populates="subscriptions")


class Video(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "tbl_videos"
    __table_args__ = (Index("ix_videos_user_created", "user_id", "created_at"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    format: Mapped[VideoFormat] = mapped_column(
        Enum(VideoFormat, name="video_format", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    resolution: Mapped[Resolution] = mapped_column(
        Enum(Resolution, name="resolution", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    ai_model: Mapped[Optional[str]] = mapped_column(String(64))
    status: Mapped[VideoStatus] = mapped_column(
        Enum(VideoStatus, name="video_status", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VideoStatus.PROCESSING,
    )
    video_url: Mapped[Optional[str]] = mapped_column(Text)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    processing_result: Mapped[Optional[str]] = mapped_column(Text)
    sections: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), onupdate=func.now())


class DailyUsage(Base):
    """Videos created per user per calendar day (UTC)."""

    __tablename__ = "tbl_daily_usage"
    __table_args__ = (UniqueConstraint("user_id", "usage_date", name="uq_daily_usage_user_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tbl_users.id", ondelete="CASCADE"), nullable=False
    )
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    videos_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))


class ApiConfig(Base):
    """Admin-managed overrides for backend credentials and feature flags."""

    __tablename__ = "tbl_api_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
