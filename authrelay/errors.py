"""
Authentication error taxonomy.

Every failure in the login flow maps to one of these. ``code`` is the opaque
identifier handed to the browser; ``detail`` is internal and only logged.
"""


class AuthError(Exception):
    """Base class for all login and session failures."""

    code = "auth_failed"
    status_code = 400
    message = "Authentication failed"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail


class MissingCode(AuthError):
    code = "missing_code"
    message = "No authorization code received"


class MissingState(AuthError):
    code = "missing_state"
    message = "No state parameter received"


class InvalidOrExpiredState(AuthError):
    code = "invalid_state"
    message = "State parameter is unknown, already used or expired"


class ProviderDenied(AuthError):
    """The identity provider redirected back with an ``error`` parameter."""

    code = "access_denied"
    message = "Authorization was denied at the identity provider"


class ExchangeError(AuthError):
    code = "exchange_failed"
    status_code = 502
    message = "Authorization code exchange failed"


class ProfileFetchError(AuthError):
    code = "profile_fetch_failed"
    status_code = 502
    message = "Fetching the user profile failed"


class NotAuthenticated(AuthError):
    code = "not_authenticated"
    status_code = 401
    message = "Not authenticated"
