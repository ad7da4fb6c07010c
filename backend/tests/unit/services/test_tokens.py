"""Tests for single-use email tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from erdstudio.repositories.user_token import UserTokenRepository
from erdstudio.services.accounts import tokens
from tests.factories.user import UserFactory

NOW = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)


class TestEncoding:
    def test_token_is_url_safe_without_padding(self):
        token = tokens.encode_token(b"\xff" * tokens.RAND_SIZE)

        assert "=" not in token and "+" not in token and "/" not in token
        assert tokens.decode_token(token) == b"\xff" * tokens.RAND_SIZE

    @pytest.mark.parametrize("token", ["", "not base64 !", "c2hvcnQ", None, 42])
    def test_malformed_tokens(self, token):
        assert tokens.decode_token(token) is None

    def test_validity_per_context(self):
        assert tokens.validity_for(tokens.CONFIRM) == timedelta(days=7)
        assert tokens.validity_for(tokens.RESET_PASSWORD) == timedelta(days=1)
        assert tokens.validity_for(tokens.change_email_context("a@example.com")) == timedelta(
            days=7
        )
        with pytest.raises(ValueError):
            tokens.validity_for("session")


class TestEmailTokens:
    @pytest.fixture()
    def repo(self):
        return UserTokenRepository()

    def test_only_the_digest_is_stored(self, repo):
        user = UserFactory()

        token, row = tokens.build_email_token(repo, user, tokens.CONFIRM, now=NOW)

        assert row.token_hash == tokens.hash_token(tokens.decode_token(token))
        assert row.sent_to == user.email
        assert token.encode() not in row.token_hash

    def test_valid_until_expiry(self, repo):
        user = UserFactory()
        token, row = tokens.build_email_token(repo, user, tokens.RESET_PASSWORD, now=NOW)

        found = tokens.verify_email_token(
            repo, token, tokens.RESET_PASSWORD, now=NOW + timedelta(hours=23)
        )
        assert found is row
        assert (
            tokens.verify_email_token(
                repo, token, tokens.RESET_PASSWORD, now=NOW + timedelta(days=1, seconds=1)
            )
            is None
        )

    def test_bound_to_context(self, repo):
        user = UserFactory()
        token, _ = tokens.build_email_token(repo, user, tokens.CONFIRM, now=NOW)

        assert tokens.verify_email_token(repo, token, tokens.RESET_PASSWORD, now=NOW) is None

    def test_confirm_token_dies_with_email_change(self, repo):
        user = UserFactory(email="before@example.com")
        token, _ = tokens.build_email_token(repo, user, tokens.CONFIRM, now=NOW)

        user.email = "after@example.com"
        repo.flush()

        assert tokens.verify_email_token(repo, token, tokens.CONFIRM, now=NOW) is None

    def test_change_token_targets_new_address(self, repo):
        user = UserFactory(email="before@example.com")
        context = tokens.change_email_context(user.email)
        token, _ = tokens.build_email_token(
            repo, user, context, now=NOW, sent_to="after@example.com"
        )

        row = tokens.verify_email_token(repo, token, context, now=NOW)
        assert row is not None
        assert row.sent_to == "after@example.com"

    def test_deleted_user_never_matches(self, repo):
        user = UserFactory()
        token, _ = tokens.build_email_token(repo, user, tokens.CONFIRM, now=NOW)
        user.deleted_at = NOW
        repo.flush()

        assert tokens.verify_email_token(repo, token, tokens.CONFIRM, now=NOW) is None
