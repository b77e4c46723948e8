"""Error types raised by the authorization core and management services."""


class AuthzError(Exception):
    """Base exception for the authorization service."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AuthzError):
    """Raised when a user, role, permission or rule does not exist."""
    pass


class ConflictError(AuthzError):
    """Raised on duplicate usernames, emails, role or permission names."""
    pass


class ForbiddenOperation(AuthzError):
    """Raised when the role-management policy rejects an operation."""
    pass


class InvalidPrincipal(AuthzError):
    """Raised when the acting principal is missing or malformed."""
    pass


class ValidationError(AuthzError):
    """Raised when input fails a domain validation rule."""
    pass
