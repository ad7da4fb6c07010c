"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from erdstudio.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    apply_sorting,
    ilike_any,
    paginate_select,
)
from erdstudio.repositories.organization import (
    OrganizationMemberRepository,
    OrganizationRepository,
)
from erdstudio.repositories.project import ProjectRepository
from erdstudio.repositories.user import UserRepository
from erdstudio.repositories.user_token import UserTokenRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "apply_sorting",
    "ilike_any",
    "paginate_select",
    # Domain
    "UserRepository",
    "UserTokenRepository",
    "OrganizationRepository",
    "OrganizationMemberRepository",
    "ProjectRepository",
]
