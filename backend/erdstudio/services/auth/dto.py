from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from erdstudio.services.accounts.dto import UserOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (case-insensitive).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param token: Encoded access JWT.
    :type token: str
    :param all_sessions: If True, every token of the user is revoked.
    :type all_sessions: bool
    """

    token: str
    all_sessions: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """
    Output DTO of a successful sign-in.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param expires_in: Lifetime of the token in seconds.
    :type expires_in: int
    :param user: Signed-in user.
    :type user: UserOut
    """

    access_token: str
    expires_in: int
    user: UserOut
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    access_expires: timedelta
