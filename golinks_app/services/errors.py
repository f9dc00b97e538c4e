"""
Domain errors raised by the store and services.

Route handlers translate these into HTTP responses; nothing here knows
about HTTP.
"""


class LinkNotFoundError(LookupError):
    """Unknown code, or a code hidden by enablement, expiry or use limit."""

    def __init__(self, code: str):
        super().__init__(f"short URL '{code}' not found")
        self.code = code


class CodeConflictError(ValueError):
    """The code is already used by another link."""

    def __init__(self, code: str):
        super().__init__(f"code '{code}' is already taken")
        self.code = code


class InvalidInputError(ValueError):
    """Request data failed validation."""


class PasswordMismatchError(ValueError):
    """Supplied password does not match the link's password."""
