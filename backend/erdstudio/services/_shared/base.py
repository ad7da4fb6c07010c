from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from erdstudio.core import errors as api_errors
from erdstudio.repositories.base import Pagination
from erdstudio.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ChangesetError,
    ConflictError,
    ContentTooLargeError,
    NotFoundError,
    PreconditionFailedError,
    ServiceError,
)
from erdstudio.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

MAX_PAGE_SIZE = 100


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, request ids, etc.).

    :param actor_id: Authenticated user identifier.
    :param is_admin: Whether the actor holds the admin flag.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    is_admin: bool = False
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination, ETag, ownership).
    * Keep services orchestration-only, no web leakage.

    Notes
    -----
    - Services never touch the global session; always use a Unit of Work.
    - Services return DTOs built inside the UoW block, never ORM instances.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ----------------------- Validation utilities ---------------------------

    @staticmethod
    def now() -> datetime:
        """Current UTC time; patched by tests through ``freezegun``."""
        return datetime.now(UTC)

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :param limit: Page size, capped at :data:`MAX_PAGE_SIZE`.
        :param sort: Sort tokens like ["-created_at", "name"].
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = min(max(1, int(limit)), MAX_PAGE_SIZE)
        return Pagination(page=page, limit=limit, sort=list(sort or []))

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(str(exc))

        if isinstance(exc, ChangesetError):
            return api_errors.UnprocessableEntity(exc.errors)

        if isinstance(exc, PreconditionFailedError):
            return api_errors.PreconditionFailed(str(exc))

        if isinstance(exc, ContentTooLargeError):
            return api_errors.PayloadTooLarge(str(exc))

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        return exc

    # --------------------------- ETag helpers -------------------------------

    def ensure_if_match(self, provided_etag: str | None, current_etag: str) -> None:
        """
        Validate an optional If-Match precondition for optimistic concurrency.

        ``None`` means the client sent no precondition.

        :raises PreconditionFailedError: When the ETag does not match.
        """
        if provided_etag is None:
            return
        candidates = {
            tag.strip().removeprefix("W/").strip('"') for tag in provided_etag.split(",")
        }
        if "*" in candidates:
            return
        if current_etag not in candidates:
            raise PreconditionFailedError()

    # --------------------------- AuthZ --------------------------------

    def ensure_admin(self) -> None:
        from erdstudio.services._shared.policies.common import is_admin

        if not is_admin(self.ctx):
            raise AuthorizationError("Admin privileges required.")
