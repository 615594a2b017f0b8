"""Custom exceptions for Switchyard.

Two families live here:

- Runtime errors raised inside the extension manager. They are caught at
  the per-extension / per-type isolation boundary and logged, never
  surfaced to the host.
- Host error kinds (``HostError`` subclasses) that extensions receive
  through their context and raise from hooks and endpoints.
"""

from typing import Optional


class SwitchyardError(Exception):
    """Base exception for all Switchyard errors.

    Provides:
    - User-friendly message
    - Technical details for debugging
    - Suggested fixes when applicable
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.cause = cause
        super().__init__(message)

    def format_user_friendly(self) -> str:
        """Format error for display to user."""
        parts = [self.message]

        if self.details:
            parts.append(f"   Details: {self.details}")

        if self.suggestion:
            parts.append(f"   Try: {self.suggestion}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self.format_user_friendly()


class DiscoveryError(SwitchyardError):
    """A discovery source (manifest, package, directory) could not be read."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None)
        if not details and source:
            details = f"Source: {source}"
        super().__init__(message, details=details, **kwargs)
        self.source = source


class RegistrationError(SwitchyardError):
    """A single extension could not be resolved, loaded or wired."""

    def __init__(
        self,
        message: str,
        extension_name: Optional[str] = None,
        path: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details:
            parts = []
            if extension_name:
                parts.append(f"Extension: {extension_name}")
            if path:
                parts.append(f"Path: {path}")
            if parts:
                details = ", ".join(parts)

        super().__init__(message, details=details, **kwargs)
        self.extension_name = extension_name
        self.path = path


class InvalidScheduleError(SwitchyardError):
    """A cron expression failed validation."""

    def __init__(self, expression: str, **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Use a five-field cron expression such as '*/5 * * * *'"
        super().__init__(
            f"Provided cron is invalid: {expression}",
            suggestion=suggestion,
            **kwargs
        )
        self.expression = expression


class ScheduledHandlerError(SwitchyardError):
    """A scheduled hook handler raised while running."""

    def __init__(self, expression: str, cause: Optional[Exception] = None, **kwargs):
        super().__init__(
            f"Scheduled handler for '{expression}' failed",
            details=f"{type(cause).__name__}: {cause}" if cause else None,
            cause=cause,
            **kwargs
        )
        self.expression = expression


class BundleError(SwitchyardError):
    """Compiling the app bundle of one extension type failed."""

    def __init__(self, message: str, extension_type: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None)
        if not details and extension_type:
            details = f"Extension type: {extension_type}"
        super().__init__(message, details=details, **kwargs)
        self.extension_type = extension_type


class MissingSharedDependencyError(SwitchyardError):
    """A shared app dependency has no published asset chunk."""

    def __init__(self, dependency: str, **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Rebuild the app so its asset chunks are published"
        super().__init__(
            f'Couldn\'t find shared extension dependency "{dependency}"',
            suggestion=suggestion,
            **kwargs
        )
        self.dependency = dependency


# Host error kinds handed to extensions


class HostError(SwitchyardError):
    """Error raised by host or extension code that maps onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def to_payload(self) -> dict:
        return {
            "errors": [
                {
                    "message": self.message,
                    "extensions": {"code": self.code},
                }
            ]
        }


class ForbiddenError(HostError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "You don't have permission to access this.", **kwargs):
        super().__init__(message, **kwargs)


class InvalidPayloadError(HostError):
    status_code = 400
    code = "INVALID_PAYLOAD"


class InvalidQueryError(HostError):
    status_code = 400
    code = "INVALID_QUERY"


class RouteNotFoundError(HostError):
    status_code = 404
    code = "ROUTE_NOT_FOUND"

    def __init__(self, path: str, **kwargs):
        super().__init__(f'Route {path} doesn\'t exist.', **kwargs)
        self.path = path


class ServiceUnavailableError(HostError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"

    def __init__(self, message: str, service: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.service = service


def format_exception_chain(error: Exception, max_depth: int = 5) -> str:
    """Format an exception chain for display.

    Handles nested exceptions and provides clean output.
    """
    lines = []
    current = error
    depth = 0

    while current and depth < max_depth:
        if isinstance(current, SwitchyardError):
            lines.append(current.format_user_friendly())
        else:
            lines.append(f"{type(current).__name__}: {current}")

        current = getattr(current, "__cause__", None) or getattr(current, "cause", None)
        depth += 1

        if current:
            lines.append("   Caused by:")

    return "\n".join(lines)
