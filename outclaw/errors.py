"""Errors raised by outclaw.

Library code raises these; callers decide how to report them.
"""


class OutclawError(Exception):
    """Base error for outclaw."""


class SkillNotFoundError(OutclawError):
    """A named skill or registry entry does not exist."""


class SkillConflictError(OutclawError):
    """The install or create target already exists."""


class SkillValidationError(OutclawError):
    """A skill header failed schema validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with the first schema violation.

        Args:
            message: Human readable description of the violation.
            field: Dotted path of the offending header field, if known.
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)


class AuthRequiredError(OutclawError):
    """A registry operation needs a credential that is not configured."""


class TransportError(OutclawError):
    """A remote request failed.

    ``status_code`` is 0 when no HTTP response was received.
    """

    def __init__(
        self, message: str, status_code: int = 0, code: str | None = None
    ) -> None:
        """Initialize the transport error."""
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ApiError(TransportError):
    """The registry API answered with a non-success status."""


class NotSupportedError(OutclawError):
    """The resolved source kind has no fetch implementation."""
