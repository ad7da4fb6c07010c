"""Authentication endpoints: registration, sessions, confirmation and password reset."""

from __future__ import annotations

from flask import Blueprint, request

from erdstudio.api.deps import (
    auth_service,
    bearer_token,
    current_ctx,
    current_user_id,
    json_response,
    no_content,
    require_auth,
    timing,
)
from erdstudio.api.etag import set_response_etag
from erdstudio.schemas import (
    LoginSchema,
    LogoutSchema,
    PasswordResetSchema,
    ProviderRegisterSchema,
    RegisterSchema,
    ResetPasswordRequestSchema,
    TokenResponseSchema,
    UserSchema,
)
from erdstudio.services.accounts import AccountService
from erdstudio.services.auth import LoginIn, LogoutIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
provider_register_schema = ProviderRegisterSchema()
login_schema = LoginSchema()
logout_schema = LogoutSchema()
reset_request_schema = ResetPasswordRequestSchema()
password_reset_schema = PasswordResetSchema()
token_schema = TokenResponseSchema()
user_schema = UserSchema()


def _signed_in(user, *, status: int = 200):
    session = auth_service().issue_for(user)
    return json_response({"data": token_schema.dump(session)}, status=status)


@bp.post("/register")
@timing
def register():
    """Register with email and password, send confirmation instructions and sign in."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    user = AccountService().register_with_password(payload)
    return _signed_in(user, status=201)


def _register_with_provider(provider: str):
    ctx = current_ctx()
    payload = provider_register_schema.load(request.get_json(silent=True) or {})
    payload["provider"] = provider
    service = AccountService(ctx=ctx)
    service.ensure_admin()
    if provider == "github":
        result = service.register_with_github(payload)
        return _signed_in(result.user, status=201 if result.created else 200)
    return _signed_in(service.register_with_heroku(payload), status=201)


@bp.post("/register/github")
@require_auth
@timing
def register_github():
    """Create (or sign in) a GitHub account; called by the trusted OAuth callback."""

    return _register_with_provider("github")


@bp.post("/register/heroku")
@require_auth
@timing
def register_heroku():
    """Create a Heroku add-on account; called by the trusted provisioning hook."""

    return _register_with_provider("heroku")


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access token."""

    data = login_schema.load(request.get_json(silent=True) or {})
    session = auth_service().login(LoginIn(email=data["email"], password=data["password"]))
    return json_response({"data": token_schema.dump(session)})


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the current token, or every token of the user with ``all_sessions``."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    auth_service().logout(LogoutIn(token=bearer_token(), all_sessions=data["all_sessions"]))
    return no_content()


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the authenticated user profile."""

    user = auth_service(current_ctx()).whoami()
    response = json_response({"data": user_schema.dump(user)})
    return set_response_etag(response, user)


@bp.post("/confirm")
@require_auth
@timing
def resend_confirmation():
    """Send the confirmation instructions again."""

    email = AccountService().deliver_confirmation_instructions(current_user_id())
    return json_response({"data": {"sent_to": email.to}}, status=202)


@bp.post("/confirm/<string:token>")
@timing
def confirm(token: str):
    """Confirm the email address the link was sent to."""

    user = AccountService().confirm_user(token)
    response = json_response({"data": user_schema.dump(user)})
    return set_response_etag(response, user)


@bp.post("/reset-password")
@timing
def request_password_reset():
    """Email reset instructions; the answer never tells whether the email exists."""

    data = reset_request_schema.load(request.get_json(silent=True) or {})
    AccountService().deliver_reset_password_instructions(data["email"])
    return json_response({"data": {"sent": True}}, status=202)


@bp.get("/reset-password/<string:token>")
@timing
def check_reset_token(token: str):
    """Tell the UI whether a reset link is still usable."""

    user = AccountService().get_user_by_reset_token(token)
    if user is None:
        return json_response({"data": {"valid": False}}, status=404)
    return json_response({"data": {"valid": True, "email": user.email}})


@bp.post("/reset-password/<string:token>")
@timing
def reset_password(token: str):
    """Set a new password from a reset link; every existing session is revoked."""

    payload = password_reset_schema.load(request.get_json(silent=True) or {})
    user = AccountService().reset_password(token, payload)
    response = json_response({"data": user_schema.dump(user)})
    return set_response_etag(response, user)
