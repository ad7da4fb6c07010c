"""Access-token sessions."""

from .dto import AccessTokenOut, AuthTokenConfig, LoginIn, LogoutIn
from .service import AuthService

__all__ = ["AccessTokenOut", "AuthService", "AuthTokenConfig", "LoginIn", "LogoutIn"]
