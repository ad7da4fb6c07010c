"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from erdstudio.models import User
from erdstudio.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory


def _count(session) -> int:
    return session.execute(select(func.count()).select_from(User)).scalar_one()


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, session):
        """
        GIVEN a writer UoW
        WHEN we create a user via repo inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = _count(session)

        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        assert _count(session) == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        initial = _count(session)

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise RuntimeError("boom")

        assert _count(session) == initial

    def test_writer_uow_rolls_back_on_integrity_error(self, session):
        existing = UserFactory(email="taken@example.com")
        initial = _count(session)

        with pytest.raises(IntegrityError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build(email="other@example.com"))
            uow.users.add(UserFactory.build(email="taken@example.com"))

        assert _count(session) == initial
        assert session.get(User, existing.id) is not None

    def test_repositories_share_the_session(self, session):
        uow = SQLAlchemyUnitOfWork()
        assert uow.users.session is uow.projects.session is uow.session
