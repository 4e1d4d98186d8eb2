"""Domain errors raised by services and rendered by the API exception handler."""


class AppError(Exception):
    """Base for errors that map to a specific HTTP status."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed input, or a credential shape invariant violation."""

    status_code = 400


class ConflictError(AppError):
    """Uniqueness violation (email, login name, OpenID subject, role name)."""

    status_code = 409


class InvalidCredentials(AppError):
    """Login name unknown, password mismatch, or password expired."""

    status_code = 401


class InvalidToken(AppError):
    """Token signature, shape, or type is wrong."""

    status_code = 403


class ExpiredToken(InvalidToken):
    """Token signature is valid but its exp is in the past."""


class UserNotFound(AppError):
    status_code = 404


class CredentialNotFound(AppError):
    status_code = 404


class RoleNotFound(AppError):
    status_code = 404


class PermissionNotFound(AppError):
    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class LastCredentialError(AppError):
    """Refusal to remove a user's only active credential."""

    status_code = 400
