"""Tests for plan limits and key creation rules."""

import pytest

from jzapi.exceptions import InvalidDailyLimitError
from jzapi.plans import (
    KeyCreateRule,
    api_key_create_rule,
    base_daily_limit,
    effective_daily_limit,
    resolve_key_limit,
)


class TestBaseDailyLimit:
    def test_defaults_per_plan(self):
        assert base_daily_limit("FREE") == 100
        assert base_daily_limit("PAID") == 5000
        assert base_daily_limit("RESELLER") == 500

    def test_unknown_plan_is_treated_as_paid(self):
        assert base_daily_limit("ENTERPRISE") == 5000

    def test_setting_overrides_default(self):
        assert base_daily_limit("FREE", {"FREE_DAILY_LIMIT": 250}) == 250

    @pytest.mark.parametrize("value", [0, "abc", None, True])
    def test_unusable_setting_falls_back(self, value):
        assert base_daily_limit("FREE", {"FREE_DAILY_LIMIT": value}) == 100

    def test_numeric_string_setting_is_accepted(self):
        assert base_daily_limit("PAID", {"PAID_DAILY_LIMIT": "7000"}) == 7000


class TestApiKeyCreateRule:
    def test_superadmin_can_create_many_keys(self):
        rule = api_key_create_rule("FREE", "SUPERADMIN")

        assert rule.can_create is True
        assert rule.max_keys == 9999
        assert rule.max_limit_per_key == 5000

    def test_reseller_defaults(self):
        rule = api_key_create_rule("RESELLER", "USER")

        assert rule == KeyCreateRule(can_create=True, max_keys=25, max_limit_per_key=500)

    def test_reseller_uses_settings(self):
        settings = {"RESELLER_MAX_KEYS": 3, "RESELLER_MAX_LIMIT_PER_KEY": 800}

        rule = api_key_create_rule("RESELLER", "USER", settings)

        assert rule.max_keys == 3
        assert rule.max_limit_per_key == 800

    @pytest.mark.parametrize("plan,limit", [("FREE", 100), ("PAID", 5000)])
    def test_regular_plans_cannot_create(self, plan, limit):
        rule = api_key_create_rule(plan, "USER")

        assert rule.can_create is False
        assert rule.max_keys == 1
        assert rule.max_limit_per_key == limit


class TestResolveKeyLimit:
    RULE = KeyCreateRule(can_create=True, max_keys=25, max_limit_per_key=500)

    def test_missing_request_uses_default(self):
        assert resolve_key_limit(None, self.RULE, 300) == 300

    def test_request_above_ceiling_is_capped(self):
        assert resolve_key_limit(10_000, self.RULE, 300) == 500

    def test_default_above_ceiling_is_capped(self):
        assert resolve_key_limit(None, self.RULE, 5000) == 500

    @pytest.mark.parametrize("requested", [0, -5])
    def test_non_positive_request_is_rejected(self, requested):
        with pytest.raises(InvalidDailyLimitError):
            resolve_key_limit(requested, self.RULE, 300)


class TestEffectiveDailyLimit:
    def test_bonus_is_added(self):
        assert effective_daily_limit(100, 50) == 150

    def test_negative_bonus_is_ignored(self):
        assert effective_daily_limit(100, -20) == 100

    def test_missing_bonus(self):
        assert effective_daily_limit(100, None) == 100
