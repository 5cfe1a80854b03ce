"""Plan definitions and quota policy resolution.

Single source of truth for plan-related limits: the base daily limit a plan
grants and the rules for issuing additional API keys. Runtime system settings
override the hardcoded defaults when available.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Mapping, Optional

from jzapi.exceptions import InvalidDailyLimitError


class Plan(StrEnum):
    FREE = "FREE"
    PAID = "PAID"
    RESELLER = "RESELLER"


class UserRole(StrEnum):
    USER = "USER"
    SUPERADMIN = "SUPERADMIN"


DEFAULT_DAILY_LIMITS: dict[str, int] = {
    Plan.FREE: 100,
    Plan.PAID: 5000,
    Plan.RESELLER: 500,
}

DEFAULT_RESELLER_MAX_KEYS = 25
DEFAULT_RESELLER_MAX_LIMIT_PER_KEY = 500
SUPERADMIN_MAX_KEYS = 9999

_LIMIT_SETTING_KEYS: dict[str, str] = {
    Plan.FREE: "FREE_DAILY_LIMIT",
    Plan.PAID: "PAID_DAILY_LIMIT",
    Plan.RESELLER: "RESELLER_DAILY_LIMIT",
}


@dataclass(frozen=True, slots=True)
class KeyCreateRule:
    can_create: bool
    max_keys: int
    max_limit_per_key: int


def _setting_int(settings: Mapping[str, Any], key: str, default: int) -> int:
    """Read a numeric setting; missing, non-numeric or zero values fall back."""
    value = settings.get(key)
    if isinstance(value, bool):
        return default
    try:
        number = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return default
    return number or default


def base_daily_limit(plan: str, settings: Optional[Mapping[str, Any]] = None) -> int:
    """Base daily request limit granted by a plan.

    Unknown plans are treated as PAID.
    """
    plan_key = plan if plan in DEFAULT_DAILY_LIMITS else Plan.PAID
    default = DEFAULT_DAILY_LIMITS[plan_key]
    if not settings:
        return default
    return _setting_int(settings, _LIMIT_SETTING_KEYS[plan_key], default)


def api_key_create_rule(
    plan: str,
    role: str,
    settings: Optional[Mapping[str, Any]] = None,
) -> KeyCreateRule:
    """Resolve whether a user may issue API keys, how many, and how large."""
    if role == UserRole.SUPERADMIN:
        return KeyCreateRule(
            can_create=True,
            max_keys=SUPERADMIN_MAX_KEYS,
            max_limit_per_key=base_daily_limit(Plan.PAID, settings),
        )

    if plan == Plan.RESELLER:
        if not settings:
            return KeyCreateRule(
                can_create=True,
                max_keys=DEFAULT_RESELLER_MAX_KEYS,
                max_limit_per_key=DEFAULT_RESELLER_MAX_LIMIT_PER_KEY,
            )
        return KeyCreateRule(
            can_create=True,
            max_keys=max(1, _setting_int(settings, "RESELLER_MAX_KEYS", DEFAULT_RESELLER_MAX_KEYS)),
            max_limit_per_key=max(
                1,
                _setting_int(
                    settings, "RESELLER_MAX_LIMIT_PER_KEY", DEFAULT_RESELLER_MAX_LIMIT_PER_KEY
                ),
            ),
        )

    return KeyCreateRule(
        can_create=False,
        max_keys=1,
        max_limit_per_key=base_daily_limit(plan, settings),
    )


def resolve_key_limit(requested: Optional[int], rule: KeyCreateRule, default: int) -> int:
    """Final daily limit for a new or edited key.

    Requests above the rule's per-key ceiling are capped, never rejected;
    non-positive values are rejected.
    """
    if requested is not None and requested <= 0:
        raise InvalidDailyLimitError()
    limit = min(requested if requested is not None else default, rule.max_limit_per_key)
    if limit <= 0:
        raise InvalidDailyLimitError()
    return limit


def effective_daily_limit(daily_limit: int, referral_bonus_daily: int) -> int:
    """Per-key limit plus the owner's referral bonus.

    The bonus is applied to every key independently, not pooled.
    """
    return daily_limit + max(referral_bonus_daily or 0, 0)
