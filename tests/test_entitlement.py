import pytest

from app.database.seed import PLAN_CATALOG
from app.models.models import Resolution, SubscriptionPlan
from app.services.entitlement_service import check_entitlement, evaluate_entitlement
from app.utils.exceptions import (
    DailyLimitExceeded,
    DurationExceeded,
    FeatureRequiresUpgrade,
    ResolutionNotAllowed,
)


def plan(code: str) -> SubscriptionPlan:
    entry = next(item for item in PLAN_CATALOG if item["code"] == code)
    return SubscriptionPlan(**entry)


@pytest.mark.parametrize(
    "code, usage, duration, resolution",
    [
        ("free", 1, 60, Resolution.HD),
        ("pro", 9, 180, Resolution.FULL_HD),
        ("business", 49, 300, Resolution.UHD),
    ],
)
def test_requests_at_the_limits_are_allowed(code, usage, duration, resolution):
    assert evaluate_entitlement(plan(code), usage, duration, resolution) is None


def test_daily_limit_reached_is_denied_with_limit():
    denial = evaluate_entitlement(plan("free"), 2, 30, Resolution.HD)
    assert isinstance(denial, DailyLimitExceeded)
    assert denial.details == {"limit": 2}
    assert denial.status_code == 403


def test_duration_over_plan_limit_is_denied():
    denial = evaluate_entitlement(plan("free"), 0, 61, Resolution.HD)
    assert isinstance(denial, DurationExceeded)
    assert denial.details == {"limit": 60}


@pytest.mark.parametrize("requested", [Resolution.FULL_HD, Resolution.UHD])
def test_free_plan_is_capped_at_720p(requested):
    denial = evaluate_entitlement(plan("free"), 0, 30, requested)
    assert isinstance(denial, ResolutionNotAllowed)
    assert denial.details == {"allowed": "720p"}


def test_pro_plan_cannot_request_4k():
    assert isinstance(evaluate_entitlement(plan("pro"), 0, 30, Resolution.UHD), ResolutionNotAllowed)


def test_custom_feature_needs_custom_ai_models():
    denial = evaluate_entitlement(plan("free"), 0, 30, Resolution.HD, "premiumEnhancement")
    assert isinstance(denial, FeatureRequiresUpgrade)
    assert denial.details == {"feature": "premiumEnhancement"}
    assert evaluate_entitlement(plan("pro"), 0, 30, Resolution.HD, "premiumEnhancement") is None


def test_first_failing_rule_wins():
    # Every rule fails; the daily limit is reported first
    denial = evaluate_entitlement(plan("free"), 5, 999, Resolution.UHD, "customAiModels")
    assert isinstance(denial, DailyLimitExceeded)

    denial = evaluate_entitlement(plan("free"), 0, 999, Resolution.UHD, "customAiModels")
    assert isinstance(denial, DurationExceeded)

    denial = evaluate_entitlement(plan("free"), 0, 30, Resolution.UHD, "customAiModels")
    assert isinstance(denial, ResolutionNotAllowed)


def test_unspecified_rules_are_skipped():
    assert evaluate_entitlement(plan("free")) is None
    assert evaluate_entitlement(plan("free"), usage_today=1) is None
    assert isinstance(evaluate_entitlement(plan("free"), usage_today=2), DailyLimitExceeded)


def test_check_entitlement_raises_the_denial():
    with pytest.raises(DurationExceeded):
        check_entitlement(plan("pro"), 0, 181, Resolution.HD)
    check_entitlement(plan("pro"), 0, 180, Resolution.FULL_HD)
