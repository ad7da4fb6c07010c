"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from sqlalchemy import select

from erdstudio.core.errors import Unauthorized
from erdstudio.core.extensions import db, get_denylist
from erdstudio.core.logger import ensure_request_id
from erdstudio.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from erdstudio.models.user import User
from erdstudio.schemas.common import PaginationQuerySchema
from erdstudio.services._shared.base import ServiceContext
from erdstudio.services._shared.dto import PaginationIn
from erdstudio.services.auth import AuthService, AuthTokenConfig

F = TypeVar("F", bound=Callable[..., Any])


def parse_pagination(default_limit: int = 20, *, default_sort: tuple[str, ...] = ()) -> PaginationIn:
    """Parse pagination parameters from ``request.args`` using Marshmallow."""

    data = PaginationQuerySchema(default_limit=default_limit).load(request.args)
    return PaginationIn(page=data["page"], limit=data["limit"], sort=data["sort"] or default_sort)


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_ctx() -> ServiceContext:
    """Build the service context of the request (anonymous without a JWT).

    The admin flag is read from the database so that revoking it applies to
    tokens already issued.
    """

    verify_jwt_in_request(optional=True)
    claims = get_jwt() or {}
    uid = claims.get("uid")
    if uid is None:
        return ServiceContext(request_id=ensure_request_id())
    is_admin = db.session.execute(select(User.is_admin).where(User.id == int(uid))).scalar()
    return ServiceContext(
        actor_id=int(uid), is_admin=bool(is_admin), request_id=ensure_request_id()
    )


def current_user_id() -> int:
    actor_id = current_ctx().actor_id
    if actor_id is None:
        raise Unauthorized("Authentication required")
    return actor_id


def bearer_token() -> str:
    """Return the raw access token of the ``Authorization`` header."""

    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Missing Bearer token")
    return token.strip()


def auth_service(ctx: ServiceContext | None = None) -> AuthService:
    """Wire :class:`AuthService` to Flask-JWT-Extended and the app's denylist."""

    return AuthService(
        token_provider=JWTTokenProvider(),
        denylist_store=get_denylist(),
        token_cfg=AuthTokenConfig(access_expires=current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]),
        ctx=ctx,
    )


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def no_content() -> Response:
    return Response(status=204)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
