"""Idempotent database seed helpers for local development environments."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, TypeVar, cast

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.orm import Session

from erdstudio.models.organization import MemberRole, Organization, OrganizationMember
from erdstudio.models.project import Project, StorageKind
from erdstudio.models.user import User
from erdstudio.services.organizations.service import create_personal_organization
from erdstudio.services.projects.stats import compute_stats
from erdstudio.uow.sqlalchemy_uow import SQLAlchemyRepositoryContainer

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

USER_FIXTURES: list[dict[str, Any]] = [
    {
        "slug": "admin",
        "name": "Ada Admin",
        "email": "admin@erdstudio.local",
        "avatar": "https://www.gravatar.com/avatar/admin?d=identicon",
        "password": "admin-password-2024",
        "is_admin": True,
        "company": "ERD Studio",
    },
    {
        "slug": "lea-martin",
        "name": "Léa Martin",
        "email": "lea.martin@example.com",
        "avatar": "https://www.gravatar.com/avatar/lea?d=identicon",
        "password": "schema-explorer-1",
        "location": "Lyon",
        "github_username": "leamartin",
    },
    {
        "slug": "omar-haddad",
        "name": "Omar Haddad",
        "email": "omar.haddad@example.com",
        "avatar": "https://www.gravatar.com/avatar/omar?d=identicon",
        "password": "relations-matter-2",
        "company": "Acme Data",
    },
]

TEAM_FIXTURE: dict[str, Any] = {
    "slug": "acme-data",
    "name": "Acme Data",
    "description": "Shared schemas of the data team.",
    "owner_email": "omar.haddad@example.com",
    "member_emails": ["lea.martin@example.com"],
}

DEMO_DOCUMENT: dict[str, Any] = {
    "sources": [
        {
            "name": "billing",
            "tables": [
                {
                    "schema": "public",
                    "table": "customers",
                    "columns": [
                        {"name": "id", "type": "uuid"},
                        {"name": "email", "type": "varchar", "comment": {"text": "login"}},
                        {"name": "plan", "type": "plan_kind"},
                    ],
                },
                {
                    "schema": "public",
                    "table": "invoices",
                    "comment": {"text": "One row per billing period"},
                    "columns": [
                        {"name": "id", "type": "uuid"},
                        {"name": "customer_id", "type": "uuid"},
                        {"name": "amount", "type": "numeric"},
                    ],
                },
            ],
            "relations": [
                {"name": "invoices_customer_fk", "src": "invoices.customer_id", "ref": "customers.id"}
            ],
            "types": [{"schema": "public", "name": "plan_kind", "values": ["free", "pro"]}],
        }
    ],
    "layouts": {
        "initial layout": {
            "tables": [{"id": "public.customers"}, {"id": "public.invoices"}],
            "memos": [{"id": 1, "content": "Invoices are immutable once sent."}],
        }
    },
    "notes": {"public.invoices": "Partitioned by month in production."},
}

PROJECT_FIXTURES: list[dict[str, Any]] = [
    {
        "slug": "billing",
        "name": "Billing",
        "description": "Billing database, shared with the team.",
        "storage_kind": StorageKind.REMOTE,
        "document": DEMO_DOCUMENT,
    },
    {
        "slug": "analytics-sandbox",
        "name": "Analytics sandbox",
        "description": "Kept in the browser.",
        "storage_kind": StorageKind.LOCAL,
        "document": None,
    },
]


def _session(database: SQLAlchemy) -> Session:
    """Return the current SQLAlchemy session."""
    return cast(Session, database.session)


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    """Update summary counters for the given table."""
    entry = summary.setdefault(table, {"created": 0, "existing": 0})
    if created:
        entry["created"] += 1
    else:
        entry["existing"] += 1


def _get_or_create(
    session: Session,
    model: type[T],
    *,
    defaults: dict[str, Any] | None = None,
    **filters: Any,
) -> tuple[T, bool]:
    """Fetch ``model`` by ``filters`` or create it using ``defaults``."""
    instance = session.execute(select(model).filter_by(**filters)).scalar_one_or_none()
    if instance is not None:
        return instance, False
    params = dict(defaults or {})
    params.update(filters)
    instance = cast(T, model(**params))
    session.add(instance)
    return instance, True


def seed_users(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create confirmed demo users, each with its personal organization."""
    if verbose:
        LOGGER.info("Seeding users...")
    session = _session(database)
    repos = SQLAlchemyRepositoryContainer(session=session)
    summary: dict[str, dict[str, int]] = {}
    now = datetime.now(UTC)

    with session.begin():
        for fixture in USER_FIXTURES:
            data = dict(fixture)
            password = data.pop("password")
            email = data.pop("email")
            user, created = _get_or_create(
                session,
                User,
                defaults={**data, "confirmed_at": now, "last_signin": now},
                email=email,
            )
            if created:
                user.password = password
                session.flush()
                create_personal_organization(repos, user)
                _touch(summary, "organizations", True)
            _touch(summary, "users", created)
    return summary


def seed_team(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create a shared organization with an owner, a member and two projects."""
    if verbose:
        LOGGER.info("Seeding shared organization and projects...")
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}

    with session.begin():
        users = {
            u.email: u
            for u in session.execute(
                select(User).where(
                    User.email.in_([TEAM_FIXTURE["owner_email"], *TEAM_FIXTURE["member_emails"]])
                )
            ).scalars()
        }
        owner = users.get(TEAM_FIXTURE["owner_email"])
        if owner is None:
            raise RuntimeError("Team owner missing; run seed_users first")

        org, created = _get_or_create(
            session,
            Organization,
            defaults={
                "name": TEAM_FIXTURE["name"],
                "description": TEAM_FIXTURE["description"],
                "is_personal": False,
                "created_by_id": owner.id,
                "updated_by_id": owner.id,
            },
            slug=TEAM_FIXTURE["slug"],
        )
        session.flush()
        _touch(summary, "organizations", created)

        roles = {owner.email: MemberRole.OWNER}
        roles.update({email: MemberRole.MEMBER for email in TEAM_FIXTURE["member_emails"]})
        for email, role in roles.items():
            user = users.get(email)
            if user is None:
                continue
            _, created = _get_or_create(
                session,
                OrganizationMember,
                defaults={"role": role, "created_by_id": owner.id},
                user_id=user.id,
                organization_id=org.id,
            )
            _touch(summary, "organization_members", created)

        for fixture in PROJECT_FIXTURES:
            document = fixture["document"]
            _, created = _get_or_create(
                session,
                Project,
                defaults={
                    "name": fixture["name"],
                    "description": fixture["description"],
                    "storage_kind": fixture["storage_kind"],
                    "content": json.dumps(document) if document is not None else None,
                    "created_by_id": owner.id,
                    "updated_by_id": owner.id,
                    **(compute_stats(document) if document is not None else {}),
                },
                organization_id=org.id,
                slug=fixture["slug"],
            )
            _touch(summary, "projects", created)
    return summary


def run_all(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Run all seeders in the correct foreign-key order."""
    if verbose:
        LOGGER.info("Running full seed pipeline...")
    combined: dict[str, dict[str, int]] = {}
    for func in (seed_users, seed_team):
        result = func(database, verbose=verbose)
        for table, counters in result.items():
            entry = combined.setdefault(table, {"created": 0, "existing": 0})
            entry["created"] += counters.get("created", 0)
            entry["existing"] += counters.get("existing", 0)
    return combined


__all__ = ["seed_team", "seed_users", "run_all"]
