"""Tests for OrganizationService: shared organizations and memberships."""

from __future__ import annotations

import pytest

from erdstudio.models.organization import MemberRole, Organization, OrganizationMember
from erdstudio.services._shared.base import ServiceContext
from erdstudio.services._shared.dto import PaginationIn
from erdstudio.services._shared.errors import (
    AuthorizationError,
    ChangesetError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
)
from erdstudio.services.organizations import OrganizationService
from tests.factories.organization import OrganizationFactory, OrganizationMemberFactory
from tests.factories.user import UserFactory


def _as(user) -> OrganizationService:
    return OrganizationService(ctx=ServiceContext(actor_id=user.id))


@pytest.fixture()
def owner():
    return UserFactory()


@pytest.fixture()
def org(owner):
    return OrganizationFactory(name="Acme", slug="acme", owner=owner)


class TestQueries:
    def test_list_returns_only_memberships(self, owner, org):
        OrganizationFactory(name="Other", owner=UserFactory())
        mine = OrganizationFactory(name="Beta", owner=owner)

        items, meta = _as(owner).list_for_user(PaginationIn(sort=("name",)))

        assert [o.id for o in items] == [org.id, mine.id]
        assert meta.total == 2
        assert meta.has_next is False

    def test_get_lists_owners_first(self, owner, org):
        member = OrganizationMemberFactory(organization=org, user=UserFactory())

        out = _as(member.user).get(org.id)

        assert out.slug == "acme"
        assert [m.role for m in out.members] == ["owner", "member"]
        assert out.members[0].user_id == owner.id
        assert out.etag

    def test_non_member_sees_nothing(self, org):
        with pytest.raises(NotFoundError):
            _as(UserFactory()).get(org.id)

    def test_deleted_organization_is_missing(self, owner, org, session):
        _as(owner).delete(org.id)

        with pytest.raises(NotFoundError):
            _as(owner).get(org.id)
        assert session.get(Organization, org.id).deleted_at is not None

    def test_anonymous_actor_is_refused(self, org):
        with pytest.raises(AuthorizationError):
            OrganizationService().get(org.id)


class TestCreateAndUpdate:
    def test_create_makes_actor_owner(self, owner):
        out = _as(owner).create({"name": "  New Co  ", "location": "Paris"})

        assert out.name == "New Co"
        assert out.slug == "new-co"
        assert out.location == "Paris"
        assert out.is_personal is False
        assert [(m.user_id, m.role) for m in out.members] == [(owner.id, "owner")]

    def test_create_suffixes_taken_slug(self, owner, org):
        assert _as(owner).create({"name": "Acme"}).slug == "acme-2"

    def test_create_requires_name(self, owner):
        with pytest.raises(ChangesetError) as exc:
            _as(owner).create({"name": "   "})
        assert exc.value.errors == {"name": ["can't be blank"]}

    def test_update_with_matching_etag(self, owner, org):
        service = _as(owner)
        etag = service.get(org.id).etag

        out = service.update(org.id, {"description": "Widgets", "slug": "ignored"}, if_match=etag)

        assert out.description == "Widgets"
        assert out.slug == "acme"

    def test_update_stale_etag(self, owner, org):
        with pytest.raises(PreconditionFailedError):
            _as(owner).update(org.id, {"name": "Renamed"}, if_match='"stale"')

    def test_update_is_owner_only(self, org):
        member = OrganizationMemberFactory(organization=org, user=UserFactory())

        with pytest.raises(AuthorizationError):
            _as(member.user).update(org.id, {"name": "Renamed"})

    def test_personal_organization_cannot_be_deleted(self, owner):
        personal = OrganizationFactory(is_personal=True, owner=owner)

        with pytest.raises(ConflictError):
            _as(owner).delete(personal.id)


class TestMembers:
    def test_add_member_by_email(self, owner, org):
        invited = UserFactory(email="bob@example.com")

        out = _as(owner).add_member(org.id, "BOB@example.com")

        assert out.user_id == invited.id
        assert out.role == "member"
        assert len(_as(invited).get(org.id).members) == 2

    def test_add_member_errors(self, owner, org):
        service = _as(owner)
        with pytest.raises(NotFoundError):
            service.add_member(org.id, "nobody@example.com")
        with pytest.raises(ConflictError):
            service.add_member(org.id, owner.email)

    def test_personal_organization_is_not_shared(self, owner):
        personal = OrganizationFactory(is_personal=True, owner=owner)
        UserFactory(email="bob@example.com")

        with pytest.raises(ConflictError):
            _as(owner).add_member(personal.id, "bob@example.com")

    def test_member_can_leave(self, org, session):
        member = OrganizationMemberFactory(organization=org, user=UserFactory())
        user_id = member.user_id

        _as(member.user).remove_member(org.id, user_id)

        assert session.get(OrganizationMember, (user_id, org.id)) is None

    def test_member_cannot_remove_others(self, owner, org):
        member = OrganizationMemberFactory(organization=org, user=UserFactory())

        with pytest.raises(AuthorizationError):
            _as(member.user).remove_member(org.id, owner.id)

    def test_last_owner_stays(self, owner, org):
        with pytest.raises(ConflictError):
            _as(owner).remove_member(org.id, owner.id)

    def test_owner_can_leave_when_another_owner_remains(self, owner, org, session):
        OrganizationMemberFactory(organization=org, user=UserFactory(), role=MemberRole.OWNER)

        _as(owner).remove_member(org.id, owner.id)

        assert session.get(OrganizationMember, (owner.id, org.id)) is None

    def test_remove_unknown_member(self, owner, org):
        with pytest.raises(NotFoundError):
            _as(owner).remove_member(org.id, owner.id + 1000)
