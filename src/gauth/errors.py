"""Error taxonomy shared by the store, the gate and the HTTP layer.

Each request-time error carries the HTTP status and the caller-safe message
it is rendered with. Detail meant for operators goes to the log, never into
``message``.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Configuration could not be loaded or validated (fatal at startup)."""


class StoreError(Exception):
    """Raised by a CredentialStore when a query fails."""


class DuplicateEntryError(StoreError):
    """Raised by a CredentialStore when a unique constraint rejects a row."""

    def __init__(self, message: str, constraint: str | None = None) -> None:
        super().__init__(message)
        self.constraint = constraint


class GauthError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        if message is not None:
            self.message = message
        self.detail = detail
        super().__init__(detail or self.message)


class MalformedRequestError(GauthError):
    status_code = 400
    message = "Request parameters missing"


class AuthError(GauthError):
    status_code = 403
    message = "Invalid API key"


class MissingApiKeyError(AuthError):
    pass


class InvalidApiKeyError(AuthError):
    pass


class DuplicateIdentError(GauthError):
    # A domain-level failure: transport succeeded, status flag is false.
    status_code = 200
    message = "Database error: duplicate entry"


class IdentNotFoundError(GauthError):
    status_code = 403
    message = "Invalid identity"


class StoreUnavailableError(GauthError):
    status_code = 500
    message = "Database error"


class RenderError(GauthError):
    status_code = 200
    message = "Failed to create qr code"
