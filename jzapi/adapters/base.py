"""Base class for proxied endpoint adapters."""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from jzapi.exceptions import MissingParameterError
from jzapi.models.api_endpoint import EndpointStatus


class EndpointAdapter(ABC):
    """
    Glue between a public ``/api/<slug>`` route and its data source.

    Subclasses declare catalog metadata and implement parameter validation
    and the actual fetch. Validation runs before the gate, so a bad request
    never spends quota; ``fetch`` runs after admission.
    """

    slug: str
    name: str
    path: str
    category: str
    description: str
    sample_query: str
    default_status: str = EndpointStatus.ACTIVE

    @abstractmethod
    def validate(self, params: Mapping[str, str]) -> dict[str, Any]:
        """Check and normalize query parameters.

        Raises:
            MissingParameterError / InvalidParameterError: 400
        """

    def check_ready(self) -> None:
        """Raise SourceNotConfiguredError when the source cannot be reached."""

    @abstractmethod
    async def fetch(self, validated: dict[str, Any]) -> Any:
        """Produce the ``result`` part of the success envelope.

        Raises:
            UpstreamError: source failure
        """

    @staticmethod
    def require(params: Mapping[str, str], name: str) -> str:
        value = (params.get(name) or "").strip()
        if not value:
            raise MissingParameterError(name)
        return value

    def catalog_definition(self) -> dict[str, str]:
        return {
            "slug": self.slug,
            "name": self.name,
            "path": self.path,
            "category": self.category,
            "description": self.description,
            "sample_query": self.sample_query,
            "default_status": self.default_status,
        }
