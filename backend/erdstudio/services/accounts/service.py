"""
AccountService
==============

Aggregate service for the ``User`` account:

- Registration (password, GitHub, Heroku), each with its personal organization.
- Credential verification (token issuance lives in ``AuthService``).
- Profile, email and password changes, email confirmation, password reset.
- Soft deletion and admin search.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError

from erdstudio.models.user import User, valid_password
from erdstudio.services._shared.base import BaseService, ServiceContext
from erdstudio.services._shared.dto import PageMeta
from erdstudio.services._shared.errors import (
    AuthenticationError,
    ChangesetError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    violates,
)
from erdstudio.services.accounts import changesets, tokens
from erdstudio.services.accounts.dto import RegistrationOut, UserOut, UserSearchIn
from erdstudio.services.accounts.notifier import Email, Notifier
from erdstudio.services.organizations.service import create_personal_organization
from erdstudio.uow.sqlalchemy_uow import SQLAlchemyRepositoryContainer

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "has already been taken"


class AccountService(BaseService):
    """
    Application service for user accounts.

    :param notifier: Email builder/sender; defaults to one bound to the
        current Flask app config.
    """

    def __init__(
        self, *, ctx: ServiceContext | None = None, notifier: Notifier | None = None
    ) -> None:
        super().__init__(ctx=ctx)
        self._notifier = notifier

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            self._notifier = Notifier()
        return self._notifier

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _get_live(uow: SQLAlchemyRepositoryContainer, user_id: int) -> User:
        user = uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def _insert_user(self, uow: SQLAlchemyRepositoryContainer, changes: dict[str, Any]) -> User:
        """Insert the user and its personal organization in the caller's UoW."""
        try:
            user = uow.users.add(User(**changes))
        except IntegrityError as exc:
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise ChangesetError.single("email", EMAIL_TAKEN) from exc
            raise
        create_personal_organization(uow, user)
        return user

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register_with_password(
        self, attrs: Mapping[str, Any], *, send_confirmation: bool = True
    ) -> UserOut:
        """
        Register a user with email and password.

        :param attrs: Raw attributes (``name``, ``email``, ``avatar``,
            ``password`` and optional profile fields).
        :param send_confirmation: Email confirmation instructions afterwards.
        :raises ChangesetError: On invalid attributes or taken email.
        """
        now = self.now()
        with self.rw_uow() as uow:
            cs = changesets.password_creation(attrs, now, users=uow.users)
            user = self._insert_user(uow, cs.ensure_valid())
            token = None
            if send_confirmation:
                token, _ = tokens.build_email_token(uow.user_tokens, user, tokens.CONFIRM, now=now)
            out = UserOut.from_model(user)
            logger.info("User registered", extra={"user_id": user.id, "context": "password"})

        if token is not None:
            with self.ro_uow() as uow:
                self.notifier.confirmation_instructions(self._get_live(uow, out.id), token)
        return out

    def register_with_github(self, attrs: Mapping[str, Any]) -> RegistrationOut:
        """
        Register (or sign in) a user coming back from GitHub.

        An existing live account with the same email is signed in instead:
        its ``last_signin`` is refreshed and ``created`` is ``False``.
        """
        now = self.now()
        with self.rw_uow() as uow:
            email = str(attrs.get("email") or "")
            existing = uow.users.get_by_email(email) if email.strip() else None
            if existing is not None:
                existing.last_signin = now
                uow.users.flush()
                logger.info("User signed in", extra={"user_id": existing.id, "context": "github"})
                return RegistrationOut(user=UserOut.from_model(existing), created=False)

            cs = changesets.github_creation(attrs, now, users=uow.users)
            user = self._insert_user(uow, cs.ensure_valid())
            logger.info("User registered", extra={"user_id": user.id, "context": "github"})
            return RegistrationOut(user=UserOut.from_model(user), created=True)

    def register_with_heroku(self, attrs: Mapping[str, Any]) -> UserOut:
        now = self.now()
        with self.rw_uow() as uow:
            cs = changesets.heroku_creation(attrs, now, users=uow.users)
            changes = cs.ensure_valid()
            if uow.users.exists_by_email(changes["email"]):
                raise ChangesetError.single("email", EMAIL_TAKEN)
            user = self._insert_user(uow, changes)
            logger.info("User registered", extra={"user_id": user.id, "context": "heroku"})
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    def authenticate(self, email: str, password: str) -> UserOut:
        """
        Verify credentials and record the sign-in.

        Unknown and deleted accounts cost a hash verification too, so response
        time does not reveal whether an email is registered.

        :raises AuthenticationError: When credentials are invalid.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(email or "")
            matches = valid_password(user, password)
            if user is None or not matches:
                raise AuthenticationError()
            user.last_signin = self.now()
            uow.users.flush()
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_user(self, user_id: int) -> UserOut:
        with self.ro_uow() as uow:
            return UserOut.from_model(self._get_live(uow, user_id))

    def update_profile(
        self, user_id: int, attrs: Mapping[str, Any], *, if_match: str | None = None
    ) -> UserOut:
        """Update profile fields (never email nor password)."""
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            self.ensure_if_match(if_match, user.compute_etag())
            changes = changesets.profile_update(attrs).ensure_valid()
            if changes:
                uow.users.update(user, **changes)
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Email confirmation
    # ------------------------------------------------------------------ #

    def deliver_confirmation_instructions(self, user_id: int) -> Email:
        """
        Email a fresh confirmation link.

        :raises ConflictError: When the account is already confirmed.
        """
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            if user.is_confirmed:
                raise ConflictError("User", "already confirmed")
            token, _ = tokens.build_email_token(
                uow.user_tokens, user, tokens.CONFIRM, now=self.now()
            )
        with self.ro_uow() as uow:
            return self.notifier.confirmation_instructions(self._get_live(uow, user_id), token)

    def confirm_user(self, token: str) -> UserOut:
        """
        Confirm the account bound to ``token`` and drop every confirm token.

        :raises InvalidTokenError: Unknown, expired or stale token.
        """
        now = self.now()
        with self.rw_uow() as uow:
            row = tokens.verify_email_token(uow.user_tokens, token, tokens.CONFIRM, now=now)
            if row is None:
                raise InvalidTokenError("Confirmation link is invalid or it has expired")
            user = row.user
            changesets.confirm(user, now).apply(user)
            uow.user_tokens.delete_for_user(user.id, [tokens.CONFIRM])
            uow.users.flush()
            logger.info("User confirmed", extra={"user_id": user.id})
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Email change
    # ------------------------------------------------------------------ #

    def apply_email_change(
        self, user_id: int, password: str | None, attrs: Mapping[str, Any]
    ) -> Email:
        """
        Validate a new email and send change instructions to it.

        The email is only switched by :meth:`update_email` once the link is
        used.

        :raises ChangesetError: Invalid or unchanged email, wrong password.
        """
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            cs = changesets.email_change(user, attrs, users=uow.users)
            changesets.validate_current_password(cs, user, password)
            new_email = cs.ensure_valid()["email"]
            token, _ = tokens.build_email_token(
                uow.user_tokens,
                user,
                tokens.change_email_context(user.email),
                now=self.now(),
                sent_to=new_email,
            )
        with self.ro_uow() as uow:
            user = self._get_live(uow, user_id)
            return self.notifier.update_email_instructions(user, new_email, token)

    def update_email(self, user_id: int, token: str) -> UserOut:
        """
        Switch to the email a change token was sent to.

        :raises InvalidTokenError: Unknown, expired or foreign token.
        :raises ChangesetError: When the new email got taken meanwhile.
        """
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            context = tokens.change_email_context(user.email)
            row = tokens.verify_email_token(uow.user_tokens, token, context, now=self.now())
            if row is None or row.user_id != user.id:
                raise InvalidTokenError("Email change link is invalid or it has expired")
            if uow.users.exists_by_email(row.sent_to, exclude_id=user.id):
                raise ChangesetError.single("email", EMAIL_TAKEN)
            user.email = row.sent_to
            user.confirmed_at = self.now()
            uow.user_tokens.delete_for_user(user.id, [context])
            uow.users.flush()
            logger.info("User email changed", extra={"user_id": user.id})
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Password
    # ------------------------------------------------------------------ #

    def _set_password(
        self, uow: SQLAlchemyRepositoryContainer, user: User, cs: changesets.Changeset
    ) -> None:
        """Store the new hash, drop every email token and revoke access tokens."""
        cs.apply(user)
        uow.users.flush()
        uow.user_tokens.delete_for_user(user.id)
        uow.users.bump_token_version(user)

    def update_password(
        self, user_id: int, current_password: str | None, attrs: Mapping[str, Any]
    ) -> UserOut:
        """
        Change the password; every session of the user is logged out.

        :raises ChangesetError: Invalid password, mismatched confirmation or
            wrong current password.
        """
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            cs = changesets.password_change(user, attrs)
            changesets.validate_current_password(cs, user, current_password)
            self._set_password(uow, user, cs)
            logger.info("User password changed", extra={"user_id": user.id})
            return UserOut.from_model(user)

    def deliver_reset_password_instructions(self, email: str) -> Email | None:
        """
        Email a reset link when ``email`` belongs to a live account.

        Unknown emails return ``None`` silently so callers cannot enumerate accounts.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(email or "")
            if user is None:
                return None
            user_id = user.id
            token, _ = tokens.build_email_token(
                uow.user_tokens, user, tokens.RESET_PASSWORD, now=self.now()
            )
        with self.ro_uow() as uow:
            return self.notifier.reset_password_instructions(self._get_live(uow, user_id), token)

    def get_user_by_reset_token(self, token: str) -> UserOut | None:
        with self.ro_uow() as uow:
            row = tokens.verify_email_token(
                uow.user_tokens, token, tokens.RESET_PASSWORD, now=self.now()
            )
            return UserOut.from_model(row.user) if row is not None else None

    def reset_password(self, token: str, attrs: Mapping[str, Any]) -> UserOut:
        """
        Set a new password from a reset link.

        :raises InvalidTokenError: Unknown or expired token.
        :raises ChangesetError: Invalid password or mismatched confirmation.
        """
        with self.rw_uow() as uow:
            row = tokens.verify_email_token(
                uow.user_tokens, token, tokens.RESET_PASSWORD, now=self.now()
            )
            if row is None:
                raise InvalidTokenError("Reset password link is invalid or it has expired")
            user = row.user
            cs = changesets.password_change(user, attrs)
            self._set_password(uow, user, cs)
            logger.info("User password reset", extra={"user_id": user.id})
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Deletion & admin
    # ------------------------------------------------------------------ #

    def delete_account(self, user_id: int) -> None:
        """Soft-delete the account and revoke its access tokens."""
        with self.rw_uow() as uow:
            user = self._get_live(uow, user_id)
            uow.users.delete(user)
            uow.user_tokens.delete_for_user(user.id)
            uow.users.bump_token_version(user)
            logger.info("User deleted", extra={"user_id": user.id})

    def search_users(self, dto: UserSearchIn) -> tuple[list[UserOut], PageMeta]:
        """
        Admin search over slug, name, email, company, location, description
        and social handles.

        :raises AuthorizationError: When the actor is not an admin.
        """
        self.ensure_admin()
        page = self.ensure_pagination(page=dto.page, limit=dto.limit, sort=dto.sort or ("name",))
        with self.ro_uow() as uow:
            result = uow.users.search(dto.query, page)
            items = [UserOut.from_model(u) for u in result.items]
            return items, PageMeta.build(page=result.page, limit=result.limit, total=result.total)
