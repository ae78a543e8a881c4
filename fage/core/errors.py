"""Error Hierarchy: typed exceptions for every fage failure mode.

Invariants:
    - Every FageError carries status (int), type (str), message (str)
    - Canonical subclasses pin their status; type, message, code, debug, errors are overridable
    - to_response() produces the transport envelope; debug only when asked for
    - Programmer errors (ConfigurationError, QueryEngineError) are NOT FageErrors:
      they never reach a caller as a business error

Design Decisions:
    - Single FageError base: a transport maps every business error with one handler
    - Severity derived from status: 5xx is CRITICAL, everything else ERROR
    - create_error() factory resolves canonical (status, type) pairs to their subclass
"""

from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class FageError(Exception):
    """Base exception for all business and runtime chain errors."""

    status: int = 500
    type: str = "ServerError"

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int | None = None,
        type: str | None = None,
        code: str | int | None = None,
        debug: Any = None,
        errors: Any = None,
    ):
        if status is not None:
            self.status = status
        if type is not None:
            self.type = type
        self.message = message or self.type
        super().__init__(self.message)
        self.code = code
        self.debug = debug
        self.errors = errors

    @property
    def severity(self) -> ErrorSeverity:
        return (
            ErrorSeverity.CRITICAL if self.status >= 500 else ErrorSeverity.ERROR
        )

    def to_response(self, include_debug: bool = False) -> dict:
        """Convert to standardized error envelope."""
        body: dict[str, Any] = {
            "status": self.status,
            "type": self.type,
            "message": self.message,
        }
        if self.code is not None:
            body["code"] = self.code
        if self.errors is not None:
            body["details"] = self.errors
        if include_debug and self.debug is not None:
            body["debug"] = self.debug
        return {"error": body}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.status}, {self.type!r}, {self.message!r})"


class _CanonicalError(FageError):
    """FageError whose status cannot be overridden by the caller."""

    def __init__(self, message: str | None = None, **kwargs: Any):
        kwargs.pop("status", None)
        super().__init__(message, **kwargs)


# ─── Client Errors (400-level) ──────────────────────────────────

class BadRequestError(_CanonicalError):
    status = 400
    type = "BadRequest"


class ValidationError(_CanonicalError):
    """Payload failed model validation. Field errors ride on `errors`."""
    status = 400
    type = "Validation"


class UnauthorizedError(_CanonicalError):
    status = 401
    type = "Unauthorized"


class NotLoggedInError(_CanonicalError):
    """No authenticated user on the meta channel."""
    status = 401
    type = "NotLoggedIn"


class ForbiddenError(_CanonicalError):
    status = 403
    type = "Forbidden"


class NotFoundError(_CanonicalError):
    status = 404
    type = "NotFound"


class ConflictError(_CanonicalError):
    status = 409
    type = "Conflict"


class RateLimitError(_CanonicalError):
    status = 429
    type = "RateLimit"


# ─── Server Errors (500-level) ──────────────────────────────────

class ServerError(_CanonicalError):
    status = 500
    type = "ServerError"


class MiddlewareError(_CanonicalError):
    """A step produced an uninvoked callable instead of a value."""
    status = 500
    type = "MiddlewareError"


class UnavailableError(_CanonicalError):
    status = 503
    type = "Unavailable"


# ─── Programmer Errors ──────────────────────────────────────────

class ConfigurationError(ValueError):
    """Invalid method block or step setup. Raised before anything runs."""


class MissingContextError(ConfigurationError):
    """A step was invoked without a context carrying `meta`."""

    def __init__(self, message: str = "No context object present"):
        super().__init__(message)


class QueryEngineError(TypeError):
    """Malformed condition, unknown operator, or invalid argument types."""


class ScopeTypeError(QueryEngineError):
    """Claims (or required scopes) are neither a string nor a list of strings."""


_CANONICAL: dict[tuple[int, str], type[FageError]] = {
    (cls.status, cls.type): cls
    for cls in (
        BadRequestError, ValidationError, UnauthorizedError, NotLoggedInError,
        ForbiddenError, NotFoundError, ConflictError, RateLimitError,
        ServerError, MiddlewareError, UnavailableError,
    )
}


def create_error(
    status: int,
    type: str,
    message: str | None = None,
    debug: Any = None,
    errors: Any = None,
    code: str | int | None = None,
) -> FageError:
    """Build an error from its parts, using the canonical subclass when one exists."""
    cls = _CANONICAL.get((status, type))
    if cls is not None:
        return cls(message, code=code, debug=debug, errors=errors)
    return FageError(
        message, status=status, type=type, code=code, debug=debug, errors=errors,
    )


def error_status(exc: BaseException) -> int:
    """Status a transport should use for `exc`. Anything without one is a 500."""
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else 500
