"""HTTP tests for ``/api/v1/organizations``."""

from __future__ import annotations

from tests.factories.organization import OrganizationFactory, OrganizationMemberFactory
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.http import API, json_headers, login


def _owner_with_org(client, **org_attrs):
    owner = UserFactory()
    org = OrganizationFactory(owner=owner, **org_attrs)
    return owner.id, org.id, login(client, owner.email, DEFAULT_PASSWORD)


def test_register_creates_personal_organization(client, outbox):
    resp = client.post(
        f"{API}/auth/register",
        json={
            "name": "Frank",
            "email": "frank@example.com",
            "avatar": "https://avatars.example.com/frank.png",
            "password": "a-long-enough-password",
        },
        headers=json_headers(),
    )
    token = resp.get_json()["data"]["access_token"]

    body = client.get(f"{API}/organizations", headers=json_headers(token)).get_json()

    assert [o["slug"] for o in body["data"]] == ["frank"]
    assert body["data"][0]["is_personal"] is True
    assert body["data"][0]["members"][0]["role"] == "owner"
    assert body["meta"]["total"] == 1


def test_create_and_get(client):
    _, _, token = _owner_with_org(client)

    created = client.post(
        f"{API}/organizations", json={"name": "Data Team"}, headers=json_headers(token)
    )

    assert created.status_code == 201
    org = created.get_json()["data"]
    assert org["slug"] == "data-team"
    assert created.headers["ETag"]

    fetched = client.get(f"{API}/organizations/{org['id']}", headers=json_headers(token))
    assert fetched.status_code == 200
    assert fetched.get_json()["data"]["name"] == "Data Team"


def test_create_requires_name(client):
    _, _, token = _owner_with_org(client)

    resp = client.post(f"{API}/organizations", json={}, headers=json_headers(token))

    assert resp.status_code == 422
    assert "name" in resp.get_json()["details"]["errors"]


def test_non_member_gets_404(client):
    _, org_id, _ = _owner_with_org(client)
    stranger = UserFactory()
    token = login(client, stranger.email, DEFAULT_PASSWORD)

    resp = client.get(f"{API}/organizations/{org_id}", headers=json_headers(token))

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"


def test_update_with_if_match(client):
    _, org_id, token = _owner_with_org(client)
    etag = client.get(f"{API}/organizations/{org_id}", headers=json_headers(token)).headers["ETag"]

    ok = client.patch(
        f"{API}/organizations/{org_id}",
        json={"description": "Analytics"},
        headers=json_headers(token, If_Match=etag),
    )
    stale = client.patch(
        f"{API}/organizations/{org_id}",
        json={"description": "Other"},
        headers=json_headers(token, If_Match=etag),
    )

    assert ok.status_code == 200
    assert ok.get_json()["data"]["description"] == "Analytics"
    assert stale.status_code == 412


def test_member_cannot_update(client):
    org = OrganizationFactory(owner=UserFactory())
    member = OrganizationMemberFactory(organization=org, user=UserFactory())
    org_id = org.id
    token = login(client, member.user.email, DEFAULT_PASSWORD)

    resp = client.patch(
        f"{API}/organizations/{org_id}", json={"name": "Mine"}, headers=json_headers(token)
    )

    assert resp.status_code == 403


def test_members_lifecycle(client):
    owner_id, org_id, token = _owner_with_org(client)
    invited = UserFactory(email="gina@example.com")
    expected = {
        "user_id": invited.id,
        "slug": invited.slug,
        "name": invited.name,
        "email": "gina@example.com",
        "avatar": invited.avatar,
        "role": "member",
    }
    invited_id = invited.id

    added = client.post(
        f"{API}/organizations/{org_id}/members",
        json={"email": "gina@example.com"},
        headers=json_headers(token),
    )
    duplicate = client.post(
        f"{API}/organizations/{org_id}/members",
        json={"email": "gina@example.com"},
        headers=json_headers(token),
    )
    unknown = client.post(
        f"{API}/organizations/{org_id}/members",
        json={"email": "nobody@example.com"},
        headers=json_headers(token),
    )

    assert added.status_code == 201
    assert added.get_json()["data"] == expected
    assert duplicate.status_code == 409
    assert unknown.status_code == 404

    removed = client.delete(
        f"{API}/organizations/{org_id}/members/{invited_id}", headers=json_headers(token)
    )
    assert removed.status_code == 204
    members = client.get(f"{API}/organizations/{org_id}", headers=json_headers(token))
    assert [m["user_id"] for m in members.get_json()["data"]["members"]] == [owner_id]


def test_last_owner_cannot_leave(client):
    owner_id, org_id, token = _owner_with_org(client)

    resp = client.delete(
        f"{API}/organizations/{org_id}/members/{owner_id}", headers=json_headers(token)
    )

    assert resp.status_code == 409


def test_delete_organization(client):
    _, org_id, token = _owner_with_org(client)

    resp = client.delete(f"{API}/organizations/{org_id}", headers=json_headers(token))

    assert resp.status_code == 204
    assert client.get(f"{API}/organizations/{org_id}", headers=json_headers(token)).status_code == 404


def test_personal_organization_cannot_be_deleted(client):
    _, org_id, token = _owner_with_org(client, is_personal=True)

    resp = client.delete(f"{API}/organizations/{org_id}", headers=json_headers(token))

    assert resp.status_code == 409
