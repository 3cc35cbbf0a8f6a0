"""Domain errors raised by the authentication and feed services."""


class ChirpError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class MalformedRequest(ChirpError):
    status_code = 400
    detail = "Malformed request"


class InvalidCredentials(ChirpError):
    status_code = 403
    detail = "Invalid credentials"


class EmailTaken(ChirpError):
    status_code = 403
    detail = "Email address already exists"


class UsernameTaken(ChirpError):
    status_code = 409
    detail = "User name already exists"


class UnknownUser(ChirpError):
    status_code = 404
    detail = "User not found"


NotFound = UnknownUser


class StoreFailure(ChirpError):
    """Wraps any error raised by the underlying store."""

    status_code = 500
    detail = "Database error"
