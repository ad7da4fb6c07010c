"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from erdstudio.models.user import User, valid_password


def _user(**overrides) -> User:
    attrs = {
        "slug": "loic",
        "name": "Loïc",
        "email": "loic@example.com",
        "avatar": "https://avatars.example.com/loic.png",
    }
    attrs.update(overrides)
    return User(**attrs)


class TestUser:
    def test_password_hashing(self, session):
        u = _user()
        u.password = "secret-passphrase"
        session.add(u)
        session.commit()
        assert u.hashed_password != "secret-passphrase"
        assert u.verify_password("secret-passphrase") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = _user()
        u.password = "secret-passphrase"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            _user().password = ""

    def test_provider_account_never_verifies(self):
        """Accounts without a hash reject every candidate, ``None`` included."""
        u = _user(provider="github")
        assert u.verify_password("anything") is False
        assert u.verify_password(None) is False

    def test_valid_password_without_user(self):
        assert valid_password(None, "anything") is False

    def test_email_normalized_and_unique(self, session):
        u1 = _user(email="  Alice@Example.com ")
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = _user(slug="alice-2", email="alice@example.com")
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()

    def test_slug_unique(self, session):
        session.add(_user(email="b1@example.com", slug="bob"))
        session.commit()

        session.add(_user(email="b2@example.com", slug="bob"))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_email_required(self):
        with pytest.raises(ValueError):
            _user(email="")

    def test_is_confirmed(self, faker):
        u = _user()
        assert u.is_confirmed is False
        u.confirmed_at = faker.date_time_this_year()
        assert u.is_confirmed is True

    def test_etag_follows_column_values(self):
        u = _user()
        before = u.compute_etag()
        assert before == u.compute_etag()
        u.company = "Acme"
        assert u.compute_etag() != before

    def test_never_exposes_password_hash_in_repr(self):
        u = _user()
        u.password = "secret-passphrase"
        assert "secret" not in repr(u)
        assert repr(u).startswith("<User id=")
