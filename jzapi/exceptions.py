"""Application exception hierarchy.

Every error that crosses the HTTP boundary derives from ``BaseAPIException``
and carries a stable ``error_code`` plus the HTTP status it maps to.
"""

from typing import Any, Optional


class BaseAPIException(Exception):
    """Base class for all API errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details


# ============================================================================
# Gate errors (proxied endpoints)
# ============================================================================


class InvalidApiKeyError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_API_KEY"

    def __init__(self, message: str = "Invalid API key."):
        super().__init__(message)


class ApiKeyNotActiveError(BaseAPIException):
    status_code = 403
    error_code = "API_KEY_NOT_ACTIVE"

    def __init__(self, message: str = "API key is not active."):
        super().__init__(message)


class UserBlockedError(BaseAPIException):
    status_code = 403
    error_code = "USER_BLOCKED"

    def __init__(self, message: str = "User account is blocked."):
        super().__init__(message)


class DailyLimitReachedError(BaseAPIException):
    status_code = 429
    error_code = "DAILY_LIMIT_REACHED"

    def __init__(self, limit: Optional[int] = None):
        details = {"limit": limit} if limit is not None else None
        super().__init__("Daily limit reached.", details=details)


class ServiceUnavailableError(BaseAPIException):
    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UpstreamError(BaseAPIException):
    """Failure talking to a third-party source after admission.

    The quota consumed by the request is not refunded.
    """

    error_code = "UPSTREAM_FAILURE"

    DNS = "dns"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"

    _STATUS = {
        DNS: 503,
        UNAVAILABLE: 503,
        TIMEOUT: 504,
        AUTH: 502,
        NOT_FOUND: 404,
        RATE_LIMITED: 429,
        GENERIC: 502,
    }

    _MESSAGES = {
        DNS: "Source host unavailable (DNS lookup failed). Please retry later.",
        UNAVAILABLE: "Source service temporarily unavailable. Please retry later.",
        TIMEOUT: "Source request timeout. Please retry later.",
        AUTH: "Source authentication failed.",
        NOT_FOUND: "Data not found.",
        RATE_LIMITED: "Source service is rate limited. Please retry in a moment.",
        GENERIC: "Failed to fetch data from source.",
    }

    def __init__(self, kind: str = GENERIC, message: Optional[str] = None):
        if kind not in self._STATUS:
            kind = self.GENERIC
        super().__init__(
            message or self._MESSAGES[kind],
            status_code=self._STATUS[kind],
            details={"kind": kind},
        )
        self.kind = kind


class SourceNotConfiguredError(BaseAPIException):
    """An adapter needs a credential or setting that is missing."""

    status_code = 500
    error_code = "SOURCE_NOT_CONFIGURED"


class MissingParameterError(BaseAPIException):
    status_code = 400
    error_code = "MISSING_PARAMETER"

    def __init__(self, name: str):
        super().__init__(f"Query parameter '{name}' is required.", details={"parameter": name})


class InvalidParameterError(BaseAPIException):
    status_code = 400
    error_code = "INVALID_PARAMETER"

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message, details={"parameter": name} if name else None)


# ============================================================================
# Management API errors
# ============================================================================


class MissingTokenError(BaseAPIException):
    status_code = 401
    error_code = "MISSING_TOKEN"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class InvalidTokenError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message)


class ForbiddenError(BaseAPIException):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden."):
        super().__init__(message)


class ResourceNotFoundError(BaseAPIException):
    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found.",
            details={"resource": resource, "id": identifier},
        )


class ConflictError(BaseAPIException):
    status_code = 409
    error_code = "CONFLICT"


class ValidationError(BaseAPIException):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class InvalidDailyLimitError(BaseAPIException):
    status_code = 400
    error_code = "INVALID_DAILY_LIMIT"

    def __init__(self, message: str = "Invalid daily limit."):
        super().__init__(message)


class ApiKeyQuotaError(BaseAPIException):
    """Raised when a user cannot hold any more API keys."""

    status_code = 400
    error_code = "API_KEY_QUOTA"


class AdminRateLimitError(BaseAPIException):
    status_code = 429
    error_code = "ADMIN_RATE_LIMITED"

    def __init__(self, retry_after: int):
        super().__init__(
            f"Too many admin actions. Retry in {retry_after}s.",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class DatabaseError(BaseAPIException):
    status_code = 500
    error_code = "DATABASE_ERROR"
