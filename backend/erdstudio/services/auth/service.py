from __future__ import annotations

import logging
from typing import Any

from erdstudio.services._shared.base import BaseService, ServiceContext
from erdstudio.services._shared.errors import AuthenticationError, NotFoundError
from erdstudio.services._shared.ports.denylist_store import TokenDenylistStore
from erdstudio.services._shared.ports.token_provider import TokenProvider
from erdstudio.services.accounts.dto import UserOut
from erdstudio.services.accounts.service import AccountService
from erdstudio.services.auth.dto import AccessTokenOut, AuthTokenConfig, LoginIn, LogoutIn

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Session lifecycle service (login / logout / whoami).

    Access tokens are issued through a pluggable :class:`TokenProvider` and
    carry ``uid`` and ``tv`` (the user's ``token_version``). Logout revokes a
    single token through the :class:`TokenDenylistStore`; logging out of all
    sessions bumps ``token_version`` instead.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        denylist_store: TokenDenylistStore,
        token_cfg: AuthTokenConfig,
        accounts: AccountService | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param token_provider: Adapter for issuing/decoding JWTs.
        :param denylist_store: Denylist for access tokens (JTI-based).
        :param token_cfg: Access token lifetime.
        :param accounts: Account service used to verify credentials.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.denylist = denylist_store
        self.cfg = token_cfg
        self.accounts = accounts or AccountService(ctx=self.ctx)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AccessTokenOut:
        """
        Verify credentials and issue an access token.

        :raises AuthenticationError: On unknown email, deleted account or bad password.
        """
        user = self.accounts.authenticate(dto.email, dto.password)
        logger.info("User signed in", extra={"user_id": user.id})
        return self.issue_for(user)

    def issue_for(self, user: UserOut) -> AccessTokenOut:
        """Issue an access token for an already identified ``user``."""
        # Minimal, non-PII claims
        claims: dict[str, Any] = {"uid": user.id, "tv": user.token_version}
        access = self.tokens.create_access_token(
            identity=user.id,
            additional_claims=claims,
            expires_delta=self.cfg.access_expires,
            fresh=True,
        )
        return AccessTokenOut(
            access_token=access,
            expires_in=int(self.cfg.access_expires.total_seconds()),
            user=user,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """Revoke ``dto.token``; with ``all_sessions`` every token of its user."""
        jti = self.tokens.get_jti(dto.token)
        self.denylist.revoke_jti(jti=jti, expires_at=self.tokens.get_expires_at(dto.token))

        if not dto.all_sessions:
            return
        user_id = self._coerce_user_id(self.tokens.get_subject(dto.token))
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            uow.users.bump_token_version(user)
        logger.info("User signed out everywhere", extra={"user_id": user_id})

    def whoami(self) -> UserOut:
        """Return the authenticated actor."""
        if self.ctx.actor_id is None:
            raise AuthenticationError("Authentication required.")
        return self.accounts.get_user(int(self.ctx.actor_id))

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    @staticmethod
    def _coerce_user_id(subject: int | str) -> int:
        """Ensure the JWT subject can be treated as an integer user id."""
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        raise AuthenticationError("Invalid token subject.")
