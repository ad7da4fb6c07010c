"""Organizations and memberships."""

from .dto import MemberOut, OrganizationOut
from .service import OrganizationService, create_personal_organization

__all__ = [
    "MemberOut",
    "OrganizationOut",
    "OrganizationService",
    "create_personal_organization",
]
