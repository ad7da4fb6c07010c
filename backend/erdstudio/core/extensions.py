"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from erdstudio.services._shared.ports.denylist_store import (
    InMemoryDenylistStore,
    TokenDenylistStore,
)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and the token denylist.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`erdstudio.models` package to ensure SQLAlchemy metadata is ready
        for migrations.

    Notes
    -----
    The access-token denylist lives in Redis when ``REDIS_URL`` is configured
    and in process memory otherwise (single worker / tests only).
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from erdstudio import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    from erdstudio.core import security

    security.init_app(app)

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        app.extensions.pop("redis_client", None)
        app.extensions["token_denylist"] = InMemoryDenylistStore()
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client

    from erdstudio.infra.redis.redis_denylist_store import RedisTokenDenylistStore

    app.extensions["token_denylist"] = RedisTokenDenylistStore(redis_client)


def get_denylist() -> TokenDenylistStore:
    """Return the access-token denylist bound to the current application."""
    store = current_app.extensions.get("token_denylist")
    if store is None:
        raise RuntimeError("Token denylist is not initialized. Call init_app() first.")
    return store
