"""Subscription and plan management routes."""

from fastapi import APIRouter

from app.api.deps import CurrentUser, DB
from app.schemas.subscriptions import UpgradeSubscriptionRequest
from app.services.subscription_service import SubscriptionService
from app.utils.envelopes import api_success

router = APIRouter(tags=["subscriptions"])


@router.get("/subscription-plans", response_model=dict)
async def list_plans(db: DB):
    """Public plan catalog."""
    plans = await SubscriptionService.list_plans(db)
    return api_success([plan.model_dump(by_alias=True) for plan in plans])


@router.get("/user/subscription", response_model=dict)
async def get_my_subscription(current_user: CurrentUser, db: DB):
    """Get current user's subscription and plan."""
    me = await SubscriptionService.get_my_subscription(db, current_user)
    return api_success(me.model_dump(by_alias=True))


@router.post("/user/subscription/upgrade", response_model=dict)
async def upgrade_subscription(payload: UpgradeSubscriptionRequest, current_user: CurrentUser, db: DB):
    me = await SubscriptionService.upgrade(db, current_user, payload.plan_id)
    return api_success(me.model_dump(by_alias=True))


@router.post("/user/subscription/cancel", response_model=dict)
async def cancel_subscription(current_user: CurrentUser, db: DB):
    me = await SubscriptionService.cancel(db, current_user)
    return api_success(me.model_dump(by_alias=True))
