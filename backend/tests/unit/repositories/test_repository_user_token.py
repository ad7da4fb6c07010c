"""Unit tests for UserTokenRepository."""

from datetime import UTC, datetime, timedelta

import pytest

from erdstudio.repositories.user_token import UserTokenRepository
from tests.factories.user import UserFactory

ISSUED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestUserTokenRepository:
    @pytest.fixture()
    def repo(self):
        return UserTokenRepository()

    @pytest.fixture()
    def user(self):
        return UserFactory()

    def _create(self, repo, user, *, token_hash=b"h" * 32, context="confirm"):
        return repo.create(
            user_id=user.id,
            token_hash=token_hash,
            context=context,
            sent_to=user.email,
            issued_at=ISSUED_AT,
        )

    def test_create_stamps_issue_time(self, repo, user):
        token = self._create(repo, user)

        assert token.id is not None
        assert token.created_at.replace(tzinfo=None) == ISSUED_AT.replace(tzinfo=None)

    def test_find_valid_respects_cutoff(self, repo, user):
        token = self._create(repo, user)

        found = repo.find_valid(
            token_hash=b"h" * 32,
            context="confirm",
            issued_after=ISSUED_AT - timedelta(days=7),
        )
        assert found is not None and found.id == token.id

        assert (
            repo.find_valid(
                token_hash=b"h" * 32,
                context="confirm",
                issued_after=ISSUED_AT + timedelta(seconds=1),
            )
            is None
        )

    def test_find_valid_requires_same_context(self, repo, user):
        self._create(repo, user, context="confirm")

        assert (
            repo.find_valid(
                token_hash=b"h" * 32,
                context="reset_password",
                issued_after=ISSUED_AT - timedelta(days=1),
            )
            is None
        )

    def test_delete_for_user(self, repo, user):
        self._create(repo, user, token_hash=b"a" * 32, context="confirm")
        self._create(repo, user, token_hash=b"b" * 32, context="reset_password")
        other = self._create(repo, UserFactory(), token_hash=b"c" * 32)

        assert repo.delete_for_user(user.id, ["reset_password"]) == 1
        assert [t.context for t in repo.list_for_user(user.id)] == ["confirm"]

        assert repo.delete_for_user(user.id) == 1
        assert repo.list_for_user(user.id) == []
        assert repo.list_for_user(other.user_id) != []
