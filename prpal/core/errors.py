"""Domain error hierarchy.

Every error raised by the services carries a user-presentable message.
The API layer maps each class to an HTTP status in
``prpal.api.handlers.exception_handlers``.
"""

from typing import Dict, List, Optional


class PRPalError(Exception):
    """Base class for all application errors."""

    default_message = "An error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PRPalError):
    """Missing or invalid required fields."""

    default_message = "Validation failed"

    def __init__(
        self,
        errors: Optional[Dict[str, List[str]]] = None,
        message: Optional[str] = None,
    ):
        self.errors = errors or {}
        if message is None and self.errors:
            message = "; ".join(
                f"{field} {msg}"
                for field, messages in self.errors.items()
                for msg in messages
            )
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class NotFoundError(PRPalError):
    """Unknown id, or an id that belongs to another user."""

    default_message = "Not found"


class ProviderError(PRPalError):
    """A data provider or LLM call failed."""

    default_message = "The upstream provider request failed"


class ConflictError(PRPalError):
    """A uniqueness constraint was violated."""

    default_message = "The record conflicts with an existing one"


class AuthenticationError(PRPalError):
    default_message = "Authentication required"
