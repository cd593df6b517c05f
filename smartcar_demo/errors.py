"""
Smartcar Demo - Errors
========================
Exception types shared by the controllers and the error page helper.

    VehicleApiError -> raised by the vehicle API adapter for any SDK failure
    ActionError     -> raised by controllers, carries an ErrorContext
    NotAuthorized   -> raised when a page needs an access token the visitor lacks

Controllers never let a raw failure reach the visitor: they convert it to an
ErrorContext naming the attempted action, and the routes redirect to the
error page built by error_url().
"""

from dataclasses import dataclass
from urllib.parse import urlencode


@dataclass(frozen=True)
class ErrorContext:
    """What went wrong (`message`) while doing what (`action`)."""

    message: str
    action: str


class VehicleApiError(Exception):
    """A call to the external vehicle API failed."""

    def __init__(self, message: str = "", code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ActionError(Exception):
    """A controller operation failed; `context` is ready for display."""

    def __init__(self, context: ErrorContext):
        super().__init__(f"{context.action}: {context.message}")
        self.context = context

    @classmethod
    def from_failure(cls, err: BaseException, default: str, action: str) -> "ActionError":
        """Build from an underlying failure, preferring its own message."""
        message = getattr(err, "message", None) or str(err) or default
        return cls(ErrorContext(message=message, action=action))


class NotAuthorized(Exception):
    """The session has no access credential."""


def error_url(context: ErrorContext) -> str:
    """Encode an ErrorContext as a navigable /error URL."""
    return "/error?" + urlencode({"message": context.message, "action": context.action})
