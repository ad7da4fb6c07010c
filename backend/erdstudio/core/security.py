"""JWT callbacks: revocation checks and problem+json auth errors."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask
from sqlalchemy import select

log = logging.getLogger(__name__)


def is_token_revoked(jwt_payload: dict[str, Any]) -> bool:
    """Return ``True`` when an access token must be refused.

    A token is revoked when its ``jti`` was explicitly denied (logout) or
    when it was issued before the user's latest ``token_version`` bump
    (password change, account deletion). Tokens of unknown or deleted users
    are refused as well.
    """
    from erdstudio.core.extensions import db, get_denylist
    from erdstudio.models.user import User

    jti = jwt_payload.get("jti")
    if jti and get_denylist().is_revoked(jti):
        return True

    try:
        user_id = int(jwt_payload.get("uid") or jwt_payload["sub"])
    except (KeyError, TypeError, ValueError):
        return True

    row = db.session.execute(
        select(User.token_version, User.deleted_at).where(User.id == user_id)
    ).first()
    if row is None or row.deleted_at is not None:
        return True
    return int(jwt_payload.get("tv", 1)) < int(row.token_version or 1)


def init_app(app: Flask) -> None:
    """Register Flask-JWT-Extended loaders on the shared ``JWTManager``."""
    from erdstudio.core.errors import _as_problem, _problem_response
    from erdstudio.core.extensions import jwt

    def _unauthorized(message: str):
        problem = _as_problem(status=HTTPStatus.UNAUTHORIZED, code="unauthorized", message=message)
        log.warning("JWT rejected: %s request_id=%s", message, problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.UNAUTHORIZED

    @jwt.token_in_blocklist_loader
    def _check_revoked(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]) -> bool:
        return is_token_revoked(jwt_payload)

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _unauthorized(reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _unauthorized(reason)

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return _unauthorized("Token has expired")

    @jwt.revoked_token_loader
    def _revoked_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return _unauthorized("Token has been revoked")
