"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginSchema,
    LogoutSchema,
    PasswordResetSchema,
    ProviderRegisterSchema,
    RegisterSchema,
    ResetPasswordRequestSchema,
    TokenResponseSchema,
)
from .common import MetaSchema, PaginationQuerySchema, SortQuerySchema, build_meta
from .organization import (
    MemberAddSchema,
    MemberSchema,
    OrganizationCreateSchema,
    OrganizationSchema,
    OrganizationUpdateSchema,
)
from .project import (
    ProjectContentSchema,
    ProjectCreateSchema,
    ProjectSchema,
    ProjectUpdateSchema,
)
from .user import (
    EmailChangeSchema,
    PasswordUpdateSchema,
    ProfileUpdateSchema,
    UserSchema,
    UserSearchQuerySchema,
)

__all__ = [
    "LoginSchema",
    "LogoutSchema",
    "PasswordResetSchema",
    "ProviderRegisterSchema",
    "RegisterSchema",
    "ResetPasswordRequestSchema",
    "TokenResponseSchema",
    "PaginationQuerySchema",
    "SortQuerySchema",
    "MetaSchema",
    "build_meta",
    "MemberAddSchema",
    "MemberSchema",
    "OrganizationCreateSchema",
    "OrganizationSchema",
    "OrganizationUpdateSchema",
    "ProjectContentSchema",
    "ProjectCreateSchema",
    "ProjectSchema",
    "ProjectUpdateSchema",
    "EmailChangeSchema",
    "PasswordUpdateSchema",
    "ProfileUpdateSchema",
    "UserSchema",
    "UserSearchQuerySchema",
]
