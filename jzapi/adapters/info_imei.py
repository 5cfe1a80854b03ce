"""IMEI status lookup backed by an external checker service."""

import re
from typing import Any, Mapping, Optional

from jzapi.adapters.base import EndpointAdapter
from jzapi.clients.upstream_client import UpstreamClient
from jzapi.exceptions import InvalidParameterError, SourceNotConfiguredError

_NON_DIGITS = re.compile(r"\D")

IMEI_TIMEOUT_SECONDS = 10.0


class InfoImeiAdapter(EndpointAdapter):
    slug = "info-imei"
    name = "IMEI status info"
    path = "/api/info-imei"
    category = "CHECKER_INFO"
    description = "Device IMEI status from the imei.info source."
    sample_query = "imei=356938035643809&apikey=YOUR_API_KEY"

    def __init__(self, client: UpstreamClient, source_url: str, source_api_key: Optional[str]):
        self.client = client
        self.source_url = source_url
        self.source_api_key = (source_api_key or "").strip()

    def validate(self, params: Mapping[str, str]) -> dict[str, Any]:
        raw = self.require(params, "imei")
        imei = _NON_DIGITS.sub("", raw)
        if not 14 <= len(imei) <= 17:
            raise InvalidParameterError(
                "Query parameter 'imei' must contain 14-17 digits.", name="imei"
            )
        return {"imei": imei}

    def check_ready(self) -> None:
        if not self.source_api_key:
            raise SourceNotConfiguredError("IMEI source API key is not configured.")

    async def fetch(self, validated: dict[str, Any]) -> Any:
        source = await self.client.get_json(
            self.source_url,
            params={"imei": validated["imei"], "API_KEY": self.source_api_key},
            timeout=IMEI_TIMEOUT_SECONDS,
            not_found_message="IMEI data not found.",
        )
        return {"imei": validated["imei"], "source": source}
