"""Typed errors raised by the auth services and mapped to HTTP responses at the API boundary."""


class AuthError(Exception):
    """Base class for expected, recoverable errors. Carries a client-safe message."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AuthError):
    """Malformed or missing input; the caller can correct it and retry."""

    code = "VALIDATION_ERROR"
    status_code = 400


class DuplicateEmailError(AuthError):
    """Another account already uses this email."""

    code = "DUPLICATE_EMAIL"
    status_code = 409

    def __init__(self, message: str = "An account with this email already exists.") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Wrong email or password. One message for every cause, so accounts cannot be enumerated."""

    code = "INVALID_CREDENTIALS"
    status_code = 401

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Token is malformed, has a bad signature, wrong type, or was revoked."""

    code = "INVALID_TOKEN"
    status_code = 401

    def __init__(self, message: str = "Invalid token.") -> None:
        super().__init__(message)


class ExpiredTokenError(InvalidTokenError):
    """Token was valid but its expiry has passed."""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token has expired.") -> None:
        super().__init__(message)


class PermissionDeniedError(AuthError):
    """Authenticated, but the role does not allow the operation."""

    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Admin access required.") -> None:
        super().__init__(message)


class NotFoundError(AuthError):
    """Requested entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class EmailDeliveryError(AuthError):
    """Outgoing email could not be handed to the SMTP server."""

    code = "EMAIL_DELIVERY_FAILED"
    status_code = 502


class ServiceUnavailableError(AuthError):
    """A backing service (usually the database) is unreachable."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable.") -> None:
        super().__init__(message)
