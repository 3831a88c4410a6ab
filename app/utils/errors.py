class PortalError(Exception):
    """Base class for errors that abort a requested action."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    status_code = 400


class NotFound(PortalError):
    status_code = 404


class Forbidden(PortalError):
    status_code = 403


class InvalidState(PortalError):
    status_code = 409


class DependencyFailure(PortalError):
    """A best-effort side effect failed. Logged, never shown to the user."""

    status_code = 502
