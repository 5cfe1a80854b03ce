"""HTTP client for third-party data sources behind proxied endpoints."""

import socket
from typing import Any, Optional

import httpx

from jzapi.exceptions import UpstreamError
from jzapi.utils.logger import get_logger, truncate

log = get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "User-Agent": "JzProject/1.0",
}

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
)


def _exception_chain(exc: BaseException):
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _is_dns_failure(exc: BaseException) -> bool:
    for item in _exception_chain(exc):
        if isinstance(item, socket.gaierror):
            return True
        if any(marker in str(item).lower() for marker in _DNS_MARKERS):
            return True
    return False


def _is_connection_reset(exc: BaseException) -> bool:
    for item in _exception_chain(exc):
        if isinstance(item, (ConnectionResetError, ConnectionRefusedError)):
            return True
        text = str(item).lower()
        if "connection reset" in text or "connection refused" in text:
            return True
    return False


def map_transport_error(exc: httpx.HTTPError) -> UpstreamError:
    """Translate an httpx failure into the upstream error taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamError(UpstreamError.TIMEOUT)
    if isinstance(exc, httpx.ConnectError):
        if _is_dns_failure(exc):
            return UpstreamError(UpstreamError.DNS)
        return UpstreamError(UpstreamError.UNAVAILABLE)
    if isinstance(exc, httpx.NetworkError) and _is_connection_reset(exc):
        return UpstreamError(UpstreamError.UNAVAILABLE)
    return UpstreamError(UpstreamError.GENERIC)


def map_status_error(status_code: int, not_found_message: Optional[str] = None) -> UpstreamError:
    """Translate a non-2xx upstream status into the upstream error taxonomy."""
    if status_code in (401, 403):
        return UpstreamError(UpstreamError.AUTH)
    if status_code == 404:
        return UpstreamError(UpstreamError.NOT_FOUND, not_found_message)
    if status_code == 429:
        return UpstreamError(UpstreamError.RATE_LIMITED)
    return UpstreamError(UpstreamError.GENERIC)


class UpstreamClient:
    """Thin httpx wrapper. No retries: quota has already been charged."""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def get_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        not_found_message: Optional[str] = None,
    ) -> Any:
        """GET ``url`` and return the decoded body.

        JSON bodies are decoded; anything else is returned as text.

        Raises:
            UpstreamError: on network failure, timeout or non-2xx status
        """
        merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
        effective_timeout = timeout if timeout is not None else self.timeout
        log.debug("upstream request", url=url, timeout=effective_timeout)

        try:
            async with httpx.AsyncClient(
                timeout=effective_timeout, transport=self._transport
            ) as client:
                response = await client.get(url, params=params, headers=merged_headers)
        except httpx.HTTPError as e:
            error = map_transport_error(e)
            log.warning(
                "upstream request failed",
                url=url,
                kind=error.kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise error from e

        if response.is_error:
            error = map_status_error(response.status_code, not_found_message)
            log.warning(
                "upstream error status",
                url=url,
                status_code=response.status_code,
                kind=error.kind,
                body=truncate(response.text),
            )
            raise error

        try:
            return response.json()
        except ValueError:
            return response.text
