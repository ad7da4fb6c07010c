from erdstudio.models.organization import MemberRole, Organization, OrganizationMember
from erdstudio.models.project import Project, StorageKind
from erdstudio.models.user import User
from erdstudio.models.user_token import UserToken

__all__ = [
    "MemberRole",
    "Organization",
    "OrganizationMember",
    "Project",
    "StorageKind",
    "User",
    "UserToken",
]
