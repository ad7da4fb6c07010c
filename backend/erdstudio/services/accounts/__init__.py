"""User accounts: registration, confirmation, email/password changes."""

from .dto import RegistrationOut, UserOut, UserSearchIn
from .notifier import Email, Notifier
from .service import AccountService

__all__ = [
    "AccountService",
    "Email",
    "Notifier",
    "RegistrationOut",
    "UserOut",
    "UserSearchIn",
]
