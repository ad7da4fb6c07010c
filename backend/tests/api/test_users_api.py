"""HTTP tests for ``/api/v1/users``."""

from __future__ import annotations

from erdstudio.models.user import User
from tests.factories.user import DEFAULT_PASSWORD, AdminFactory, UserFactory
from tests.helpers.emails import token_from_email
from tests.helpers.http import API, json_headers, login

NEW_PASSWORD = "brand-new-password"


def _signed_in(client, **attrs):
    user = UserFactory(**attrs)
    return user.id, login(client, user.email, DEFAULT_PASSWORD)


class TestMe:
    def test_get_me(self, client):
        user_id, token = _signed_in(client, name="Eve")

        resp = client.get(f"{API}/users/me", headers=json_headers(token))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["id"] == user_id
        assert resp.get_json()["data"]["name"] == "Eve"
        assert resp.headers["ETag"]

    def test_patch_with_if_match(self, client):
        _, token = _signed_in(client)
        etag = client.get(f"{API}/users/me", headers=json_headers(token)).headers["ETag"]

        resp = client.patch(
            f"{API}/users/me",
            json={"company": "Acme", "location": " Lyon "},
            headers=json_headers(token, If_Match=etag),
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["company"] == "Acme"
        assert data["location"] == "Lyon"
        assert resp.headers["ETag"] != etag

    def test_patch_with_stale_etag(self, client):
        _, token = _signed_in(client)

        resp = client.patch(
            f"{API}/users/me",
            json={"company": "Acme"},
            headers=json_headers(token, If_Match='"stale"'),
        )

        assert resp.status_code == 412
        assert resp.get_json()["code"] == "precondition_failed"

    def test_patch_blank_name(self, client):
        _, token = _signed_in(client)

        resp = client.patch(f"{API}/users/me", json={"name": None}, headers=json_headers(token))

        assert resp.status_code == 422
        assert "name" in resp.get_json()["details"]["errors"]

    def test_delete_me_revokes_token(self, client, session):
        user_id, token = _signed_in(client)

        resp = client.delete(f"{API}/users/me", headers=json_headers(token))

        assert resp.status_code == 204
        assert session.get(User, user_id).deleted_at is not None
        assert client.get(f"{API}/users/me", headers=json_headers(token)).status_code == 401

    def test_requires_authentication(self, client):
        assert client.get(f"{API}/users/me").status_code == 401


class TestCredentials:
    def test_password_change_returns_fresh_token(self, client):
        user = UserFactory()
        email = user.email
        token = login(client, email, DEFAULT_PASSWORD)

        resp = client.put(
            f"{API}/users/me/password",
            json={
                "current_password": DEFAULT_PASSWORD,
                "password": NEW_PASSWORD,
                "password_confirmation": NEW_PASSWORD,
            },
            headers=json_headers(token),
        )

        assert resp.status_code == 200
        fresh = resp.get_json()["data"]["access_token"]
        assert client.get(f"{API}/users/me", headers=json_headers(token)).status_code == 401
        assert client.get(f"{API}/users/me", headers=json_headers(fresh)).status_code == 200
        assert login(client, email, NEW_PASSWORD)

    def test_password_change_needs_current_password(self, client):
        _, token = _signed_in(client)

        resp = client.put(
            f"{API}/users/me/password",
            json={"current_password": "nope", "password": NEW_PASSWORD},
            headers=json_headers(token),
        )

        assert resp.status_code == 422
        assert "current_password" in resp.get_json()["details"]["errors"]

    def test_email_change_flow(self, client, outbox):
        _, token = _signed_in(client)

        resp = client.post(
            f"{API}/users/me/email",
            json={"current_password": DEFAULT_PASSWORD, "email": "Moved@Example.com"},
            headers=json_headers(token),
        )
        assert resp.status_code == 202
        assert resp.get_json()["data"]["sent_to"] == "moved@example.com"

        change_token = token_from_email(outbox[-1])
        resp = client.post(f"{API}/users/me/email/{change_token}", headers=json_headers(token))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["email"] == "moved@example.com"


class TestSearch:
    def test_search_requires_admin(self, client):
        _, token = _signed_in(client)

        resp = client.get(f"{API}/users?q=ada", headers=json_headers(token))

        assert resp.status_code == 403

    def test_admin_search(self, client):
        admin = AdminFactory(name="Admin")
        token = login(client, admin.email, DEFAULT_PASSWORD)
        UserFactory(name="Ada Lovelace")
        UserFactory(name="Ada Byron")
        UserFactory(name="Grace Hopper")

        resp = client.get(f"{API}/users?q=ada&limit=1&sort=name", headers=json_headers(token))

        assert resp.status_code == 200
        body = resp.get_json()
        assert [u["name"] for u in body["data"]] == ["Ada Byron"]
        assert body["meta"] == {
            "total": 2,
            "page": 1,
            "limit": 1,
            "has_prev": False,
            "has_next": True,
        }
