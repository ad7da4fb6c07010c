"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Services commit
through their unit of work; those commits only release the session's
SAVEPOINT and are rolled back with the outer transaction.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from sqlalchemy.orm import scoped_session, sessionmaker

from erdstudio.core.config import TestingConfig
from erdstudio.core.extensions import db as _db  # Flask-SQLAlchemy instance
from erdstudio.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps the token denylist in process and only logs emails.
    - Avoids hitting external services.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret-key-with-enough-entropy-0123456789"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-entropy-0123456789"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=30)
    PUBLIC_URL = "http://erdstudio.test"
    MAIL_FROM = "ERD Studio <noreply@erdstudio.test>"
    PROJECT_MAX_CONTENT_BYTES = 4096
    USE_PROXYFIX = False
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The session joins the connection with ``create_savepoint``: its own
    ``commit()`` / ``rollback()`` only release or roll back a SAVEPOINT, the
    outer transaction is rolled back when the test ends.
    """
    top_trans = connection.begin()
    connection.begin_nested()

    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Application code (units of work, JWT callbacks) uses db.session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
    SQLAlchemySession.set(None)


@pytest.fixture()
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def outbox(monkeypatch):
    """Capture every email delivered by :class:`~erdstudio.services.accounts.Notifier`."""
    from erdstudio.services.accounts.notifier import Notifier

    sent = []

    def _deliver(self, email):
        sent.append(email)
        return email

    monkeypatch.setattr(Notifier, "deliver", _deliver)
    return sent


@pytest.fixture()
def denylist(app):
    """Return the process-local denylist and forget revocations afterwards."""
    store = app.extensions["token_denylist"]
    yield store
    store._revoked.clear()
