"""DTOs for OrganizationService."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from erdstudio.models.organization import Organization, OrganizationMember


@dataclass(frozen=True, slots=True)
class MemberOut:
    user_id: int
    slug: str
    name: str
    email: str
    avatar: str
    role: str

    @classmethod
    def from_model(cls, member: OrganizationMember) -> MemberOut:
        user = member.user
        return cls(
            user_id=member.user_id,
            slug=user.slug,
            name=user.name,
            email=user.email,
            avatar=user.avatar,
            role=member.role.value,
        )


@dataclass(frozen=True, slots=True)
class OrganizationOut:
    """
    Organization with its members.

    :param is_personal: Personal organizations belong to exactly one user.
    :type is_personal: bool
    :param members: Memberships, owners first.
    :type members: tuple[MemberOut, ...]
    """

    id: int
    slug: str
    name: str
    logo: str | None
    description: str | None
    location: str | None
    github_username: str | None
    twitter_username: str | None
    is_personal: bool
    members: tuple[MemberOut, ...]
    created_at: datetime | None
    updated_at: datetime | None
    etag: str

    @classmethod
    def from_model(cls, org: Organization) -> OrganizationOut:
        members = sorted(org.members, key=lambda m: (m.role.value != "owner", m.user_id))
        return cls(
            id=org.id,
            slug=org.slug,
            name=org.name,
            logo=org.logo,
            description=org.description,
            location=org.location,
            github_username=org.github_username,
            twitter_username=org.twitter_username,
            is_personal=bool(org.is_personal),
            members=tuple(MemberOut.from_model(m) for m in members),
            created_at=org.created_at,
            updated_at=org.updated_at,
            etag=org.compute_etag(),
        )
