"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, or SQLAlchemy directly. They serve as stable contracts between
repositories, domain models, and application services.

The translation to HTTP responses (RFC 7807) is handled by
``erdstudio/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Supports PostgreSQL (constraint name lookup) and fallback to SQLSTATE.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    # Some dialects (PostgreSQL) include constraint name in the error message
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


class PreconditionFailedError(ServiceError):
    """
    Raised when preconditions such as ETag ``If-Match`` validation fail.
    """

    def __init__(self, message: str = "Precondition failed (ETag mismatch)") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """
    Raised when the actor is authenticated but not allowed to act on a resource.
    """

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ChangesetError(ServiceError):
    """
    Raised when submitted attributes fail domain validation.

    Carries the per-field messages, e.g.
    ``{"email": ["has already been taken"]}``.

    :param errors: Field name to list of messages.
    :type errors: dict[str, list[str]]
    """

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = {field: list(messages) for field, messages in errors.items()}

    @classmethod
    def single(cls, field: str, message: str) -> ChangesetError:
        return cls({field: [message]})

    def __str__(self) -> str:
        parts = [f"{field} {'; '.join(msgs)}" for field, msgs in sorted(self.errors.items())]
        return ", ".join(parts) or "Validation failed"


class AuthenticationError(ServiceError):
    """
    Raised when credentials are missing or invalid.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class InvalidTokenError(ServiceError):
    """
    Raised when an email link token is unknown, expired or already used.
    """

    def __init__(self, message: str = "Link is invalid or it has expired") -> None:
        super().__init__(message)


class ContentTooLargeError(ServiceError):
    """
    Raised when a stored document exceeds the configured size limit.

    :param size: Submitted size in bytes.
    :param limit: Maximum accepted size in bytes.
    """

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Content is {size} bytes, the limit is {limit} bytes")
        self.size = size
        self.limit = limit
