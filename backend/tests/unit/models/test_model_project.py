"""Tests for the Project model."""

from __future__ import annotations

from uuid import UUID

import pytest
from sqlalchemy.exc import IntegrityError

from erdstudio.models.project import STAT_FIELDS, Project, StorageKind
from tests.factories.organization import OrganizationFactory
from tests.factories.project import ProjectFactory


class TestProject:
    def test_defaults(self, session):
        project = ProjectFactory(name="  Billing  ")
        assert isinstance(project.id, UUID)
        assert project.name == "Billing"
        assert project.storage_kind is StorageKind.LOCAL
        assert project.encoding_version == 2
        assert project.stats() == dict.fromkeys(STAT_FIELDS, 0)
        assert project.is_archived is False

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            Project(name="   ")

    def test_local_project_cannot_store_content(self, session):
        org = OrganizationFactory()
        session.add(
            Project(
                organization_id=org.id,
                slug="sandbox",
                name="Sandbox",
                storage_kind=StorageKind.LOCAL,
                content="{}",
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()

    def test_slug_unique_per_organization(self, session):
        first = ProjectFactory(slug="billing")
        # Same slug in another organization is fine
        ProjectFactory(slug="billing")

        session.add(
            Project(
                organization_id=first.organization_id,
                slug="billing",
                name="Billing bis",
                storage_kind=StorageKind.LOCAL,
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()
