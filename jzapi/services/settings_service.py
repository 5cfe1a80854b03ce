"""Runtime system settings with a bounded-staleness cache.

Settings rows are merged over hardcoded defaults and cached for a short TTL
measured with an injected clock. Writes go through the provider so the cache
is invalidated immediately on the writing instance; other instances converge
within one TTL.
"""

import asyncio
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union
from uuid import UUID

from jzapi.exceptions import ValidationError
from jzapi.repositories.system_setting_repository import SystemSettingRepository
from jzapi.utils.clock import Clock, system_clock
from jzapi.utils.logger import get_logger

log = get_logger(__name__)

SettingValue = Union[int, str, bool]
SystemSettingMap = dict[str, SettingValue]

DEFAULT_SYSTEM_SETTINGS: SystemSettingMap = {
    "FREE_DAILY_LIMIT": 100,
    "PAID_DAILY_LIMIT": 5000,
    "RESELLER_DAILY_LIMIT": 500,
    "RESELLER_MAX_KEYS": 25,
    "RESELLER_MAX_LIMIT_PER_KEY": 500,
    "REFERRAL_BONUS_PER_INVITE": 250,
    "BILLING_DEFAULT_CURRENCY": "IDR",
    "ACCOUNT_STATUS_POLL_MS": 15_000,
    "AUTH_CAPTCHA_ENABLED": True,
}

SYSTEM_SETTING_KEYS = tuple(DEFAULT_SYSTEM_SETTINGS)


@dataclass(frozen=True, slots=True)
class SettingDefinition:
    kind: str  # "number", "string", "boolean"
    min: Optional[int] = None
    max: Optional[int] = None
    max_length: Optional[int] = None


SYSTEM_SETTING_DEFINITIONS: dict[str, SettingDefinition] = {
    "FREE_DAILY_LIMIT": SettingDefinition("number", min=1, max=1_000_000),
    "PAID_DAILY_LIMIT": SettingDefinition("number", min=1, max=1_000_000),
    "RESELLER_DAILY_LIMIT": SettingDefinition("number", min=1, max=1_000_000),
    "RESELLER_MAX_KEYS": SettingDefinition("number", min=1, max=1000),
    "RESELLER_MAX_LIMIT_PER_KEY": SettingDefinition("number", min=1, max=1_000_000),
    "REFERRAL_BONUS_PER_INVITE": SettingDefinition("number", min=0, max=100_000),
    "BILLING_DEFAULT_CURRENCY": SettingDefinition("string", max_length=10),
    "ACCOUNT_STATUS_POLL_MS": SettingDefinition("number", min=3000, max=120_000),
    "AUTH_CAPTCHA_ENABLED": SettingDefinition("boolean"),
}

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}
_CURRENCY_RE = re.compile(r"^[A-Z]{3,10}$")


def _as_finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def normalize_setting_value(key: str, value: Any) -> SettingValue:
    """Validate and coerce a value for a known setting key.

    Raises:
        ValidationError: unknown key or a value that fails its definition
    """
    definition = SYSTEM_SETTING_DEFINITIONS.get(key)
    if definition is None:
        raise ValidationError(f"Unknown setting {key}.", details={"key": key})

    if definition.kind == "number":
        numeric = _as_finite_number(value)
        if numeric is None:
            raise ValidationError(f"Setting {key} must be a number.", details={"key": key})
        integer = math.trunc(numeric)
        if definition.min is not None and integer < definition.min:
            raise ValidationError(
                f"Setting {key} must be >= {definition.min}.", details={"key": key}
            )
        if definition.max is not None and integer > definition.max:
            raise ValidationError(
                f"Setting {key} must be <= {definition.max}.", details={"key": key}
            )
        return integer

    if definition.kind == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in _TRUE_STRINGS:
                return True
            if normalized in _FALSE_STRINGS:
                return False
        raise ValidationError(f"Setting {key} must be boolean.", details={"key": key})

    if not isinstance(value, str):
        raise ValidationError(f"Setting {key} must be a string.", details={"key": key})
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"Setting {key} cannot be empty.", details={"key": key})
    if definition.max_length and len(trimmed) > definition.max_length:
        raise ValidationError(
            f"Setting {key} must be <= {definition.max_length} characters.",
            details={"key": key},
        )
    if key == "BILLING_DEFAULT_CURRENCY":
        upper = trimmed.upper()
        if not _CURRENCY_RE.match(upper):
            raise ValidationError(
                "Currency must be 3-10 uppercase letters (e.g. IDR).", details={"key": key}
            )
        return upper
    return trimmed


class SystemSettingsProvider:
    """Process-wide settings cache.

    ``get`` is read-mostly and tolerant of staleness up to ``ttl_seconds``.
    """

    def __init__(self, ttl_seconds: float = 30.0, clock: Clock = system_clock):
        self._ttl = ttl_seconds
        self._clock = clock
        self._cached: Optional[SystemSettingMap] = None
        self._fetched_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        if self._cached is None or self._fetched_at is None:
            return False
        age = (self._clock.now() - self._fetched_at).total_seconds()
        return age < self._ttl

    def invalidate(self) -> None:
        self._cached = None
        self._fetched_at = None
        log.debug("system settings cache invalidated")

    async def get(self, repo: SystemSettingRepository, force: bool = False) -> SystemSettingMap:
        """Current settings, from cache when fresh."""
        if not force and self._is_fresh():
            return dict(self._cached)  # type: ignore[arg-type]

        async with self._lock:
            if not force and self._is_fresh():
                return dict(self._cached)  # type: ignore[arg-type]

            rows = await repo.list_by_keys(SYSTEM_SETTING_KEYS)
            merged: SystemSettingMap = dict(DEFAULT_SYSTEM_SETTINGS)
            for row in rows:
                if row.key not in DEFAULT_SYSTEM_SETTINGS:
                    continue
                if isinstance(row.value_json, (str, int, float, bool)):
                    merged[row.key] = row.value_json

            self._cached = merged
            self._fetched_at = self._clock.now()
            log.debug("system settings loaded", overrides=len(rows))
            return dict(merged)

    async def update(
        self,
        repo: SystemSettingRepository,
        key: str,
        value: Any,
        updated_by_id: Optional[UUID],
    ) -> SettingValue:
        """Validate, store and invalidate. Caller commits the transaction."""
        normalized = normalize_setting_value(key, value)
        await repo.upsert(key, normalized, updated_by_id)
        self.invalidate()
        log.info("system setting updated", key=key, value=normalized)
        return normalized


_settings_provider: Optional[SystemSettingsProvider] = None


def get_settings_provider() -> SystemSettingsProvider:
    """Get singleton settings provider."""
    global _settings_provider
    if _settings_provider is None:
        from jzapi.config import get_settings

        _settings_provider = SystemSettingsProvider(
            ttl_seconds=get_settings().settings_cache_ttl_seconds
        )
    return _settings_provider
