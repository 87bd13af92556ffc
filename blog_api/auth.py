"""
Authentication blueprint (mounted at /api/auth):
- POST /register
- POST /login
- POST /logout
- POST /refresh
- GET  /me
- PUT  /profile
- POST /change-password

Access tokens go out in the response body and an `accessToken` cookie; the
refresh token is stored on the user row and sent as an HTTP-only
`refreshToken` cookie. /refresh only accepts the refresh token that is
currently stored for the user, so logout and password changes revoke it.
"""
from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, g, jsonify, request

from blog_api.errors import AccountDeactivated, BadRequest, Conflict, RefreshFailed, Unauthenticated
from models import get_storage
from models.base_model import utcnow
from models.schemas.user import (
    ChangePasswordSchema,
    ProfileUpdateSchema,
    UserCreateSchema,
    UserLoginSchema,
    UserOutSchema,
)
from models.user import User
from blog_api.limiter import AUTH_LIMIT_MESSAGE, auth_limit, failed_only, limiter
from utils.decorators import authenticate
from utils.security import (
    REFRESH,
    TokenPair,
    create_access_token,
    decode_token,
    dummy_password_hash,
    generate_tokens,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
profile_update_schema = ProfileUpdateSchema()
change_password_schema = ChangePasswordSchema()


def _set_access_cookie(response, token: str):
    config = current_app.config
    response.set_cookie(
        config["ACCESS_COOKIE_NAME"],
        token,
        max_age=int(config["JWT_ACCESS_EXPIRES"].total_seconds()),
        httponly=True,
        secure=config["COOKIE_SECURE"],
        samesite=config["COOKIE_SAMESITE"],
        path="/",
    )


def _set_refresh_cookie(response, token: str):
    config = current_app.config
    response.set_cookie(
        config["REFRESH_COOKIE_NAME"],
        token,
        max_age=int(config["JWT_REFRESH_EXPIRES"].total_seconds()),
        httponly=True,
        secure=config["COOKIE_SECURE"],
        samesite=config["COOKIE_SAMESITE"],
        path="/api/auth",
    )


def _clear_cookies(response):
    config = current_app.config
    response.delete_cookie(config["ACCESS_COOKIE_NAME"], path="/")
    response.delete_cookie(config["REFRESH_COOKIE_NAME"], path="/api/auth")


def _start_session(user: User) -> TokenPair:
    """Mint a token pair and make its refresh token the only one accepted for this user."""
    tokens = generate_tokens(user.id)
    user.refresh_token = tokens.refresh_token
    return tokens


def _session_response(user: User, tokens: TokenPair, message: str, status: int = 200):
    response = jsonify(
        {
            "success": True,
            "message": message,
            "data": {
                "user": user_out_schema.dump(user),
                "accessToken": tokens.access_token,
                "refreshToken": tokens.refresh_token,
            },
        }
    )
    response.status_code = status
    _set_access_cookie(response, tokens.access_token)
    _set_refresh_cookie(response, tokens.refresh_token)
    return response


@bp.post("/register")
@limiter.limit(auth_limit, deduct_when=failed_only, error_message=AUTH_LIMIT_MESSAGE)
def register():
    """
    Register a new reader account and start a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created (returns user and tokens)
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    storage = get_storage()
    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        raise Conflict("User with this email already exists")

    user = User(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=current_app.config["DEFAULT_ROLE"],
        is_active=True,
        last_login=utcnow(),
    )
    tokens = _start_session(user)
    storage.new(user)
    storage.save()
    logger.info("user registered: %s", user.id)

    return _session_response(user, tokens, "User registered successfully", 201)


@bp.post("/login")
@limiter.limit(auth_limit, deduct_when=failed_only, error_message=AUTH_LIMIT_MESSAGE)
def login():
    """
    Login: returns the user, an access token and a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid email or password
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    storage = get_storage()
    session = storage.get_session()
    user = session.query(User).filter(User.email == data["email"]).first()
    if user is None:
        verify_password(data["password"], dummy_password_hash())
        logger.info("login failed: unknown email")
        raise Unauthenticated("Invalid email or password")
    if not verify_password(data["password"], user.password_hash):
        logger.info("login failed: bad password for user %s", user.id)
        raise Unauthenticated("Invalid email or password")
    if not user.is_active:
        logger.warning("login refused: deactivated user %s", user.id)
        raise AccountDeactivated()

    tokens = _start_session(user)
    user.last_login = utcnow()
    storage.new(user)
    storage.save()

    return _session_response(user, tokens, "Login successful")


@bp.post("/logout")
@authenticate()
def logout():
    """
    Logout: revokes the stored refresh token and clears auth cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    storage = get_storage()
    user = g.current_user
    user.refresh_token = None
    storage.new(user)
    storage.save()

    response = jsonify({"success": True, "message": "Logged out successfully"})
    _clear_cookies(response)
    return response


@bp.post("/refresh")
@limiter.limit(auth_limit, deduct_when=failed_only, error_message=AUTH_LIMIT_MESSAGE)
def refresh():
    """
    Issue a new access token from the refresh token cookie
    (or a JSON body `refreshToken` for non-browser clients).
    ---
    tags:
      - Auth
    responses:
      200:
        description: New access token
      401:
        description: Refresh token missing, invalid, expired or revoked
    """
    config = current_app.config
    token = request.cookies.get(config["REFRESH_COOKIE_NAME"])
    if not token:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict) and isinstance(payload.get("refreshToken"), str):
            token = payload["refreshToken"]
    if not token:
        raise RefreshFailed("Refresh token not provided")

    try:
        decoded = decode_token(token, expected_type=REFRESH)
    except Unauthenticated as e:
        logger.info("refresh failed: %s", e.code)
        raise RefreshFailed()

    storage = get_storage()
    user = storage.get(User, decoded.get("userId"))
    if user is None or not user.is_active:
        raise RefreshFailed()
    if not user.refresh_token or not hmac.compare_digest(user.refresh_token, token):
        logger.warning("refresh failed: revoked refresh token for user %s", user.id)
        raise RefreshFailed()

    access_token = create_access_token(user.id)
    data = {"accessToken": access_token}
    new_refresh = None
    if config["JWT_ROTATE_REFRESH"]:
        tokens = _start_session(user)
        access_token, new_refresh = tokens.access_token, tokens.refresh_token
        data = {"accessToken": access_token, "refreshToken": new_refresh}
        storage.new(user)
        storage.save()

    response = jsonify({"success": True, "message": "Token refreshed", "data": data})
    _set_access_cookie(response, access_token)
    if new_refresh:
        _set_refresh_cookie(response, new_refresh)
    return response


@bp.get("/me")
@authenticate()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"success": True, "data": {"user": user_out_schema.dump(g.current_user)}}), 200


@bp.put("/profile")
@authenticate()
def update_profile():
    """
    Update name and/or avatar of the current user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            avatar: { type: string }
    responses:
      200:
        description: Updated user
      400:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = profile_update_schema.load(payload)

    storage = get_storage()
    user = g.current_user
    for field in ("name", "avatar"):
        if field in data:
            setattr(user, field, data[field])
    storage.new(user)
    storage.save()

    return jsonify(
        {
            "success": True,
            "message": "Profile updated successfully",
            "data": {"user": user_out_schema.dump(user)},
        }
    ), 200


@bp.post("/change-password")
@authenticate()
def change_password():
    """
    Change the current user's password. Starts a fresh session; refresh
    tokens issued before the change stop working.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            currentPassword: { type: string }
            newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Validation error or wrong current password
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    storage = get_storage()
    user = g.current_user
    if not user.password_hash:
        raise BadRequest("Password login is not enabled for this account")
    if not verify_password(data["current_password"], user.password_hash):
        raise BadRequest("Current password is incorrect")

    user.password_hash = hash_password(data["new_password"])
    tokens = _start_session(user)
    storage.new(user)
    storage.save()
    logger.info("password changed for user %s", user.id)

    return _session_response(user, tokens, "Password changed successfully")
