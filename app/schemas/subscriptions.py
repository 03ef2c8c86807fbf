"""Subscription and plan schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.models import Subscription, SubscriptionPlan


class PlanResponse(BaseModel):
    """Subscription plan details."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    code: str
    name: str
    price_monthly: int = Field(..., ge=0, alias="priceMonthly")
    daily_video_limit: int = Field(..., ge=0, alias="dailyVideoLimit")
    duration_limit: int = Field(..., ge=0, alias="durationLimit", description="Seconds")
    resolution: str
    has_watermark: bool = Field(..., alias="hasWatermark")
    custom_ai_models: bool = Field(..., alias="customAiModels")

    @classmethod
    def from_model(cls, plan: SubscriptionPlan) -> "PlanResponse":
        return cls(
            id=plan.id,
            code=plan.code,
            name=plan.name,
            price_monthly=plan.price_monthly,
            daily_video_limit=plan.daily_video_limit,
            duration_limit=plan.duration_limit,
            resolution=plan.resolution.value,
            has_watermark=plan.has_watermark,
            custom_ai_models=plan.custom_ai_models,
        )


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(..., alias="userId")
    plan_id: int = Field(..., alias="planId")
    start_date: datetime = Field(..., alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    active: bool

    @classmethod
    def from_model(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            id=str(subscription.id),
            user_id=str(subscription.user_id),
            plan_id=subscription.plan_id,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            active=subscription.active,
        )


class SubscriptionMe(BaseModel):
    """Current user's subscription information."""

    subscription: Optional[SubscriptionResponse] = None
    plan: PlanResponse


class UpgradeSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: int = Field(..., gt=0, alias="planId")
