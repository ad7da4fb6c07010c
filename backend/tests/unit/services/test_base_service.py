"""Tests for the shared service helpers: ETags, pagination and error mapping."""

from __future__ import annotations

import pytest

from erdstudio.core import errors as api_errors
from erdstudio.services._shared.base import MAX_PAGE_SIZE, BaseService, ServiceContext
from erdstudio.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ChangesetError,
    ConflictError,
    ContentTooLargeError,
    InvalidTokenError,
    NotFoundError,
    PreconditionFailedError,
)

ETAG = "0123abcd"


@pytest.fixture()
def service() -> BaseService:
    return BaseService()


class TestIfMatch:
    @pytest.mark.parametrize(
        "header",
        [None, ETAG, f'"{ETAG}"', f'W/"{ETAG}"', f'"other", "{ETAG}"', "*"],
    )
    def test_accepted(self, service, header):
        service.ensure_if_match(header, ETAG)

    @pytest.mark.parametrize("header", ['"other"', 'W/"other"', ""])
    def test_rejected(self, service, header):
        with pytest.raises(PreconditionFailedError):
            service.ensure_if_match(header, ETAG)


def test_pagination_is_clamped(service):
    page = service.ensure_pagination(page=0, limit=10_000, sort=("-name",))

    assert page.page == 1
    assert page.limit == MAX_PAGE_SIZE
    assert page.sort == ["-name"]


@pytest.mark.parametrize(
    ("error", "expected", "status"),
    [
        (NotFoundError("Project", "x"), api_errors.NotFound, 404),
        (ConflictError("User", "taken"), api_errors.Conflict, 409),
        (AuthenticationError(), api_errors.Unauthorized, 401),
        (AuthorizationError(), api_errors.Forbidden, 403),
        (PreconditionFailedError(), api_errors.PreconditionFailed, 412),
        (ContentTooLargeError(10, 5), api_errors.PayloadTooLarge, 413),
        (InvalidTokenError(), api_errors.APIError, 400),
    ],
)
def test_translate_exceptions(service, error, expected, status):
    translated = service.translate_exceptions(error)

    assert isinstance(translated, expected)
    assert translated.status_code == status


def test_changeset_error_keeps_field_messages(service):
    translated = service.translate_exceptions(ChangesetError({"email": ["can't be blank"]}))

    assert translated.status_code == 422
    assert translated.details == {"errors": {"email": ["can't be blank"]}}


def test_unknown_errors_pass_through(service):
    error = KeyError("x")

    assert service.translate_exceptions(error) is error


def test_ensure_admin():
    BaseService(ctx=ServiceContext(actor_id=1, is_admin=True)).ensure_admin()
    with pytest.raises(AuthorizationError):
        BaseService(ctx=ServiceContext(actor_id=1)).ensure_admin()
    with pytest.raises(AuthorizationError):
        BaseService(ctx=ServiceContext(is_admin=True)).ensure_admin()
