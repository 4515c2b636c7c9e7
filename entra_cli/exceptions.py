"""Exception hierarchy for the entra CLI."""


class EntraCliError(Exception):
    """Base class for all errors surfaced to the user."""


class ValidationError(EntraCliError):
    """Command input is invalid. Raised before any network access."""


class NotFoundError(EntraCliError):
    """The requested directory object does not exist or has nothing to list."""


class NotAuthenticatedError(EntraCliError):
    """No usable credentials, or token acquisition failed."""


class TransportError(EntraCliError):
    """The directory could not be reached or returned an unusable response."""


class GraphAPIError(TransportError):
    """Raised when a Graph API call returns a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")

    def is_auth_error(self) -> bool:
        if self.status_code in (401, 403):
            return True
        return ("InvalidAuthenticationToken" in self.body
                or "Authorization_RequestDenied" in self.body)

    def is_throttled(self) -> bool:
        return self.status_code == 429
