"""HTTP tests for projects nested under ``/api/v1/organizations/<id>/projects``."""

from __future__ import annotations

import json
import uuid

import pytest

from tests.factories.organization import OrganizationFactory
from tests.factories.project import ProjectFactory
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.http import API, json_headers, login

DOCUMENT = {
    "sources": [{"tables": [{"columns": [{}, {}]}], "relations": [{}]}],
    "layouts": {"initial layout": {"memos": []}},
}


@pytest.fixture()
def org_and_token(client):
    user = UserFactory()
    org = OrganizationFactory(owner=user)
    return org.id, login(client, user.email, DEFAULT_PASSWORD)


def _projects_url(org_id, *parts):
    return "/".join([f"{API}/organizations/{org_id}/projects", *map(str, parts)])


def _create(client, org_id, token, **payload):
    body = {"name": "Shop", "storage_kind": "remote", "content": DOCUMENT, **payload}
    return client.post(_projects_url(org_id), json=body, headers=json_headers(token))


def test_create_remote_project(client, org_and_token):
    org_id, token = org_and_token

    resp = _create(client, org_id, token)

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert uuid.UUID(data["id"])
    assert data["slug"] == "shop"
    assert data["storage_kind"] == "remote"
    assert data["stats"]["nb_tables"] == 1
    assert data["stats"]["nb_columns"] == 2
    assert json.loads(data["content"]) == DOCUMENT
    assert resp.headers["ETag"]


def test_create_validation_errors(client, org_and_token):
    org_id, token = org_and_token

    unknown_kind = _create(client, org_id, token, storage_kind="cloud")
    missing_content = _create(client, org_id, token, content=None)

    assert unknown_kind.status_code == 422
    assert "storage_kind" in unknown_kind.get_json()["details"]["errors"]
    assert missing_content.status_code == 422
    assert missing_content.get_json()["details"]["errors"] == {"content": ["can't be blank"]}


def test_content_too_large(client, org_and_token):
    org_id, token = org_and_token

    resp = _create(client, org_id, token, content={"notes": {"n": "x" * 5000}})

    assert resp.status_code == 413
    assert resp.get_json()["code"] == "payload_too_large"


def test_list_get_and_archive(client, org_and_token):
    org_id, token = org_and_token
    project_id = _create(client, org_id, token).get_json()["data"]["id"]
    local_id = _create(client, org_id, token, name="Draft", storage_kind="local", content=None)
    local_id = local_id.get_json()["data"]["id"]

    listing = client.get(_projects_url(org_id), headers=json_headers(token)).get_json()
    assert {p["id"] for p in listing["data"]} == {project_id, local_id}
    assert all("content" not in p for p in listing["data"])
    assert listing["meta"]["total"] == 2

    archived = client.post(_projects_url(org_id, local_id, "archive"), headers=json_headers(token))
    assert archived.status_code == 200
    assert archived.get_json()["data"]["archived_at"] is not None

    listing = client.get(_projects_url(org_id), headers=json_headers(token)).get_json()
    assert [p["id"] for p in listing["data"]] == [project_id]
    fetched = client.get(_projects_url(org_id, local_id), headers=json_headers(token))
    assert fetched.status_code == 200


def test_update_metadata_and_content(client, org_and_token):
    org_id, token = org_and_token
    created = _create(client, org_id, token)
    project_id = created.get_json()["data"]["id"]
    etag = created.headers["ETag"]

    renamed = client.patch(
        _projects_url(org_id, project_id),
        json={"name": "Shop v2", "slug": "shop-v2"},
        headers=json_headers(token, If_Match=etag),
    )
    assert renamed.status_code == 200
    assert renamed.get_json()["data"]["slug"] == "shop-v2"

    stale = client.put(
        _projects_url(org_id, project_id, "content"),
        json={"content": {"sources": []}},
        headers=json_headers(token, If_Match=etag),
    )
    assert stale.status_code == 412

    uploaded = client.put(
        _projects_url(org_id, project_id, "content"),
        json={"content": {"sources": []}, "encoding_version": 3},
        headers=json_headers(token, If_Match=renamed.headers["ETag"]),
    )
    assert uploaded.status_code == 200
    data = uploaded.get_json()["data"]
    assert data["stats"]["nb_tables"] == 0
    assert data["encoding_version"] == 3


def test_local_project_refuses_content(client, org_and_token):
    org_id, token = org_and_token
    created = _create(client, org_id, token, storage_kind="local", content=None)
    project_id = created.get_json()["data"]["id"]

    resp = client.put(
        _projects_url(org_id, project_id, "content"),
        json={"content": DOCUMENT},
        headers=json_headers(token),
    )

    assert resp.status_code == 409


def test_non_member_gets_404(client, org_and_token):
    org_id, token = org_and_token
    project_id = _create(client, org_id, token).get_json()["data"]["id"]
    stranger = UserFactory()
    stranger_token = login(client, stranger.email, DEFAULT_PASSWORD)

    assert client.get(_projects_url(org_id), headers=json_headers(stranger_token)).status_code == 404
    resp = client.get(_projects_url(org_id, project_id), headers=json_headers(stranger_token))
    assert resp.status_code == 404


def test_project_of_another_organization(client, org_and_token):
    org_id, token = org_and_token
    project_id = ProjectFactory().id

    resp = client.get(_projects_url(org_id, project_id), headers=json_headers(token))

    assert resp.status_code == 404


def test_delete_project(client, org_and_token):
    org_id, token = org_and_token
    project_id = _create(client, org_id, token).get_json()["data"]["id"]

    resp = client.delete(_projects_url(org_id, project_id), headers=json_headers(token))

    assert resp.status_code == 204
    assert client.get(_projects_url(org_id, project_id), headers=json_headers(token)).status_code == 404


def test_requires_authentication(client, org_and_token):
    org_id, _ = org_and_token

    assert client.get(_projects_url(org_id)).status_code == 401
