"""
DTOs for AccountService.

Services return these frozen dataclasses instead of ORM instances; raw
attribute mappings go in through the account changesets.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from erdstudio.models.user import User


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public-safe user representation (never carries the password hash).

    :param confirmed: Whether the email address was confirmed.
    :type confirmed: bool
    :param token_version: Current access-token generation, embedded in JWTs.
    :type token_version: int
    """

    id: int
    slug: str
    name: str
    email: str
    avatar: str
    provider: str | None
    company: str | None
    location: str | None
    description: str | None
    github_username: str | None
    twitter_username: str | None
    is_admin: bool
    confirmed: bool
    token_version: int
    last_signin: datetime | None
    data: dict[str, Any] | None
    created_at: datetime | None
    updated_at: datetime | None
    etag: str

    @classmethod
    def from_model(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            slug=user.slug,
            name=user.name,
            email=user.email,
            avatar=user.avatar,
            provider=user.provider,
            company=user.company,
            location=user.location,
            description=user.description,
            github_username=user.github_username,
            twitter_username=user.twitter_username,
            is_admin=bool(user.is_admin),
            confirmed=user.is_confirmed,
            token_version=int(user.token_version or 1),
            last_signin=user.last_signin,
            data=dict(user.data) if user.data is not None else None,
            created_at=user.created_at,
            updated_at=user.updated_at,
            etag=user.compute_etag(),
        )


@dataclass(frozen=True, slots=True)
class RegistrationOut:
    """
    Result of a registration.

    :param user: Registered (or, for GitHub, signed-in) user.
    :param created: ``False`` when an existing account was signed in instead.
    """

    user: UserOut
    created: bool = True


@dataclass(frozen=True, slots=True)
class UserSearchIn:
    """
    Admin search input.

    :param query: Free text matched case-insensitively against searchable fields.
    """

    query: str | None = None
    page: int = 1
    limit: int = 20
    sort: tuple[str, ...] = ()
