"""Grok utility routes (Business plan only)."""

from fastapi import APIRouter

from app.api.deps import BackendFactory, CurrentUser, DB
from app.schemas.ai import GrokAnalyzeImageRequest, GrokSummarizeRequest
from app.services.grok_service import GrokService
from app.services.subscription_service import SubscriptionService
from app.utils.envelopes import api_success
from app.utils.exceptions import FeatureRequiresUpgrade

router = APIRouter(prefix="/grok", tags=["grok"])

BUSINESS_PLAN_CODE = "business"


async def _require_business_plan(db, user) -> None:
    plan = await SubscriptionService.get_effective_plan(db, user)
    if plan.code != BUSINESS_PLAN_CODE:
        raise FeatureRequiresUpgrade("grok")


@router.post("/summarize", response_model=dict)
async def summarize(payload: GrokSummarizeRequest, current_user: CurrentUser, db: DB, factory: BackendFactory):
    await _require_business_plan(db, current_user)
    result = await GrokService(factory).summarize(payload.text)
    return api_success(result)


@router.post("/analyze-image", response_model=dict)
async def analyze_image(
    payload: GrokAnalyzeImageRequest, current_user: CurrentUser, db: DB, factory: BackendFactory
):
    await _require_business_plan(db, current_user)
    result = await GrokService(factory).analyze_image(payload.image_base64)
    return api_success(result)
