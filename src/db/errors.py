# exceptions raised by the backend client


class BackendError(Exception):
    """Base class for failures reported by the backend.

    ``code`` is a short machine readable reason, ``str(err)`` the raw message.
    """

    code = "backend_error"

    def __init__(self, message: str = "", code: str | None = None):
        super().__init__(message or self.code)
        if code is not None:
            self.code = code


class AuthError(BackendError):
    """Credential, registration or password reset failure."""

    code = "auth_error"


class NotAuthenticatedError(BackendError):
    """A user scoped operation was attempted without a signed-in user."""

    code = "not_authenticated"

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)
