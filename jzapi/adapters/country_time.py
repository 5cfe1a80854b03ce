"""Local time for a country, computed without any upstream call."""

from typing import Any, Mapping
from zoneinfo import ZoneInfo

from jzapi.adapters.base import EndpointAdapter
from jzapi.exceptions import InvalidParameterError
from jzapi.utils.clock import Clock, system_clock

COUNTRY_TIMEZONES: dict[str, str] = {
    "id": "Asia/Jakarta",
    "sg": "Asia/Singapore",
    "my": "Asia/Kuala_Lumpur",
    "th": "Asia/Bangkok",
    "vn": "Asia/Ho_Chi_Minh",
    "ph": "Asia/Manila",
    "jp": "Asia/Tokyo",
    "kr": "Asia/Seoul",
    "cn": "Asia/Shanghai",
    "tw": "Asia/Taipei",
    "in": "Asia/Kolkata",
    "ae": "Asia/Dubai",
    "sa": "Asia/Riyadh",
    "gb": "Europe/London",
    "de": "Europe/Berlin",
    "fr": "Europe/Paris",
    "it": "Europe/Rome",
    "nl": "Europe/Amsterdam",
    "tr": "Europe/Istanbul",
    "ru": "Europe/Moscow",
    "us": "America/New_York",
    "ca": "America/Toronto",
    "mx": "America/Mexico_City",
    "br": "America/Sao_Paulo",
    "ar": "America/Argentina/Buenos_Aires",
    "au": "Australia/Sydney",
    "nz": "Pacific/Auckland",
    "za": "Africa/Johannesburg",
    "eg": "Africa/Cairo",
}


def format_gmt_offset(seconds: int) -> str:
    """``GMT``, ``GMT+7``, ``GMT-3`` or ``GMT+5:30`` style offset label."""
    if seconds == 0:
        return "GMT"
    sign = "+" if seconds > 0 else "-"
    hours, rest = divmod(abs(seconds), 3600)
    minutes = rest // 60
    if minutes:
        return f"GMT{sign}{hours}:{minutes:02d}"
    return f"GMT{sign}{hours}"


class CountryTimeAdapter(EndpointAdapter):
    slug = "country-time"
    name = "Country time"
    path = "/api/country-time"
    category = "INFORMATION"
    description = "Local time for an ISO-2 country code."
    sample_query = "country=id&apikey=YOUR_API_KEY"

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    def validate(self, params: Mapping[str, str]) -> dict[str, Any]:
        country = self.require(params, "country").lower()
        timezone = COUNTRY_TIMEZONES.get(country)
        if timezone is None:
            raise InvalidParameterError("Unsupported country code.", name="country")
        return {"country": country, "timezone": timezone}

    async def fetch(self, validated: dict[str, Any]) -> Any:
        now = self.clock.now()
        local = now.astimezone(ZoneInfo(validated["timezone"]))
        offset = local.utcoffset()
        return [
            {
                "country": validated["country"].upper(),
                "timezone": validated["timezone"],
                "day_name": local.strftime("%A"),
                "local_date": local.strftime("%Y-%m-%d"),
                "local_time": local.strftime("%H:%M:%S"),
                "utc_offset": format_gmt_offset(int(offset.total_seconds()) if offset else 0),
                "unix": int(now.timestamp()),
            }
        ]
