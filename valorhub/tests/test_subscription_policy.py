"""Tests for subscription tier policy."""

from types import SimpleNamespace

import pytest

from valorhub.features.subscriptions.policy import (
    DEFAULT_TIER,
    SUBSCRIPTION_TIERS,
    get_max_active_missions,
    get_subscription_tier,
    get_tier_info,
    limit_reached_message,
    normalize_tier,
)
from valorhub.models.user import Subscription


@pytest.mark.parametrize("tier,expected", [("free", 3), ("standard", 5), ("premium", 10)])
def test_max_active_missions_per_tier(tier, expected):
    assert get_max_active_missions(tier) == expected


def test_policy_is_total_and_deterministic():
    for tier in SUBSCRIPTION_TIERS:
        first = get_max_active_missions(tier)
        assert isinstance(first, int) and first > 0
        assert get_max_active_missions(tier) == first


@pytest.mark.parametrize("tier", [None, "", "gold", "FREE", "enterprise"])
def test_unknown_tier_resolves_to_free(tier):
    assert normalize_tier(tier) == DEFAULT_TIER
    assert get_max_active_missions(tier) == 3


def test_tier_table_is_read_only():
    with pytest.raises(TypeError):
        SUBSCRIPTION_TIERS["free"] = SUBSCRIPTION_TIERS["premium"]


def test_tier_info_json_uses_camel_case():
    payload = get_tier_info("standard").to_json()
    assert payload["maxActiveMissions"] == 5
    assert payload["price"] == 3
    assert payload["name"] == "Standard"


def test_subscription_tier_from_model_and_mapping():
    user = SimpleNamespace(subscription=Subscription(tier="premium"))
    assert get_subscription_tier(user) == "premium"
    assert get_subscription_tier({"subscription": {"tier": "standard"}}) == "standard"
    assert get_subscription_tier({"subscription": None}) == "free"
    assert get_subscription_tier(SimpleNamespace(subscription=None)) == "free"
    assert get_subscription_tier(None) == "free"


def test_limit_message_suggests_upgrade_for_free_tier():
    message = limit_reached_message("free", 3)
    assert "Standard" in message and "Premium" in message


def test_limit_message_for_paid_tier():
    assert "up to 5 active missions" in limit_reached_message("standard", 5)
