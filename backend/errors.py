"""Error taxonomy shared by the services and the HTTP layer."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed client input."""

    status_code = 400


class ConflictError(AppError):
    """A unique username or email is already taken."""

    status_code = 400


class AuthError(AppError):
    """Bad credentials. The message never says which part was wrong."""

    status_code = 401


class UpstreamError(AppError):
    """The generative-text API call failed."""


class ParseError(AppError):
    """Model output could not be turned into the required structure."""


class InternalError(AppError):
    """Session or credential store failure."""
