"""Exceptions shared by the auth, repository and AI layers."""


class ValidationError(ValueError):
    """Rejected input, raised before anything is written.

    ``field`` names the form field the message belongs next to.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(LookupError):
    """Row missing, or owned by another user."""


class StoreError(RuntimeError):
    """A write failed in the database; the session was rolled back."""


class AuthError(PermissionError):
    """Bad credentials, or a missing/expired session."""
