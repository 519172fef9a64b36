"""Error types raised by the portal services.

Each error carries the HTTP status the API answers with; ``main`` maps them
to JSON responses in one handler.
"""


class HealthHubError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(HealthHubError):
    """Bad credentials, or a doctor whose account is not approved yet."""
    status_code = 401


class PermissionDeniedError(HealthHubError):
    status_code = 403


class NotFoundError(HealthHubError):
    status_code = 404


class ValidationError(HealthHubError):
    """Missing or invalid input supplied by the user."""
    status_code = 400


class ConflictError(ValidationError):
    status_code = 409


class ExternalServiceError(HealthHubError):
    """The remote Q&A endpoint was unreachable or answered badly."""
    status_code = 502
