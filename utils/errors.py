"""
Error taxonomy for the credential & session layer.

- InvalidCredentialFormat: the Authorization header is missing or malformed
- AuthenticationFailed: bad password, bad/expired token, unknown/revoked session
- StoreUnavailable: the persistence layer could not be reached
- InternalInvariantViolation: stored data is corrupted (e.g. unparseable hash)

Format and authentication failures are expected and map to 401 at the HTTP edge.
The `reason` on AuthenticationFailed is for logs only; clients only ever see
`message`.
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class for every error raised by the auth layer."""

    message = "Unauthorized"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentialFormat(AuthError):
    message = "Missing or invalid Authorization header"


class MissingAuthorizationHeader(InvalidCredentialFormat):
    message = "Authorization header is missing"


class AuthorizationSchemeMismatch(InvalidCredentialFormat):
    message = "Unexpected authorization scheme"


class MalformedAuthorizationHeader(InvalidCredentialFormat):
    message = "Malformed Authorization header"


class EmptyCredential(InvalidCredentialFormat):
    message = "Empty credential in Authorization header"


class AuthenticationFailed(AuthError):
    """
    Raised for every rejected credential. `reason` tells which check failed
    (bad_password, bad_signature, expired, revoked, not_found, ...).
    """

    message = "Invalid credentials"

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message)

    def __repr__(self):
        return f"<AuthenticationFailed reason={self.reason}>"


class StoreUnavailable(AuthError):
    message = "Session store unavailable"


class InternalInvariantViolation(AuthError):
    message = "Internal error"


class ConfigError(RuntimeError):
    """Fatal configuration problem detected at startup."""
