"""Session endpoints: login, refresh, logout and the caller's own account."""

from __future__ import annotations

from flask import Blueprint, current_app

from vidnest.api.deps import (
    build_auth_service,
    current_identity,
    json_body,
    json_response,
    require_auth,
    timing,
)
from vidnest.schemas import (
    ChangePasswordSchema,
    IdentitySchema,
    LocalLoginSchema,
    LoginSchema,
    RefreshSchema,
    SessionResponseSchema,
)
from vidnest.services import ChangePasswordIn, LoginIn, LogoutIn, RefreshIn
from vidnest.services.auth.dto import LOCAL_STORAGE

bp = Blueprint("auth", __name__)

local_login_schema = LocalLoginSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
change_password_schema = ChangePasswordSchema()
session_schema = SessionResponseSchema()
identity_schema = IdentitySchema()


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    if current_app.config.get("STORAGE_TYPE", LOCAL_STORAGE) == LOCAL_STORAGE:
        data = local_login_schema.load(json_body())
        dto = LoginIn(password=data["password"])
    else:
        data = login_schema.load(json_body())
        dto = LoginIn(password=data["password"], username=data["username"])
    session = build_auth_service().login(dto)
    return json_response(session_schema.dump(session))


@bp.post("/refresh")
@timing
def refresh():
    """Mint a new access token; the refresh token rotates near expiry."""

    data = refresh_schema.load(json_body())
    session = build_auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response(session_schema.dump(session))


@bp.post("/logout")
@timing
def logout():
    """Revoke the supplied refresh token. Always succeeds."""

    body = json_body()
    token = body.get("refreshToken") if isinstance(body, dict) else None
    build_auth_service().logout(LogoutIn(refresh_token=token if isinstance(token, str) else None))
    return json_response({"ok": True})


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the identity carried by the verified access token."""

    return json_response({"ok": True, "data": identity_schema.dump(current_identity())})


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    """Change the password of the authenticated account."""

    data = change_password_schema.load(json_body())
    build_auth_service().change_password(
        current_identity(),
        ChangePasswordIn(new_password=data["new_password"]),
    )
    return json_response({"ok": True})
