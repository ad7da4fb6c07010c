"""User endpoints: the signed-in account and the admin directory."""

from __future__ import annotations

from flask import Blueprint, request

from erdstudio.api.deps import (
    auth_service,
    current_ctx,
    current_user_id,
    json_response,
    no_content,
    require_auth,
    timing,
)
from erdstudio.api.etag import if_match, set_response_etag
from erdstudio.schemas import (
    EmailChangeSchema,
    PasswordUpdateSchema,
    ProfileUpdateSchema,
    TokenResponseSchema,
    UserSchema,
    UserSearchQuerySchema,
    build_meta,
)
from erdstudio.services.accounts import AccountService, UserSearchIn

bp = Blueprint("users", __name__, url_prefix="/users")

user_schema = UserSchema()
user_list_schema = UserSchema(many=True)
profile_update_schema = ProfileUpdateSchema()
email_change_schema = EmailChangeSchema()
password_update_schema = PasswordUpdateSchema()
search_query_schema = UserSearchQuerySchema()
token_schema = TokenResponseSchema()


def _user_response(user, *, status: int = 200):
    response = json_response({"data": user_schema.dump(user)}, status=status)
    return set_response_etag(response, user)


@bp.get("")
@require_auth
@timing
def search_users():
    """Admin search over users (``?q=``, pagination and ``sort``)."""

    args = search_query_schema.load(request.args)
    service = AccountService(ctx=current_ctx())
    items, meta = service.search_users(
        UserSearchIn(
            query=args["q"],
            page=args["page"],
            limit=args["limit"],
            sort=tuple(args["sort"]),
        )
    )
    return json_response({"data": user_list_schema.dump(items), "meta": build_meta(meta)})


@bp.get("/me")
@require_auth
@timing
def get_me():
    return _user_response(AccountService().get_user(current_user_id()))


@bp.patch("/me")
@require_auth
@timing
def update_me():
    """Update profile fields; honours ``If-Match``."""

    payload = profile_update_schema.load(request.get_json(silent=True) or {})
    user = AccountService().update_profile(current_user_id(), payload, if_match=if_match())
    return _user_response(user)


@bp.delete("/me")
@require_auth
@timing
def delete_me():
    """Delete the account; its tokens stop working immediately."""

    AccountService().delete_account(current_user_id())
    return no_content()


@bp.post("/me/email")
@require_auth
@timing
def request_email_change():
    """Send change instructions to the new address."""

    data = email_change_schema.load(request.get_json(silent=True) or {})
    email = AccountService().apply_email_change(
        current_user_id(), data["current_password"], {"email": data["email"]}
    )
    return json_response({"data": {"sent_to": email.to}}, status=202)


@bp.post("/me/email/<string:token>")
@require_auth
@timing
def confirm_email_change(token: str):
    return _user_response(AccountService().update_email(current_user_id(), token))


@bp.put("/me/password")
@require_auth
@timing
def update_password():
    """Change the password and return a fresh token (older ones are revoked)."""

    data = password_update_schema.load(request.get_json(silent=True) or {})
    current_password = data.pop("current_password")
    user = AccountService().update_password(current_user_id(), current_password, data)
    session = auth_service().issue_for(user)
    return json_response({"data": token_schema.dump(session)})
