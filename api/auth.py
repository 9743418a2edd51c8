"""
Authentication blueprint (mounted at /api/v1/users):
- POST /register
- POST /login
- POST /logout
- POST /refresh-token
- POST /change-password

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs, one secret per kind)
- Keeps the single live refresh token on the user row so it can be rotated and revoked
- Sends both tokens in the body and as the accessToken/refreshToken cookies
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, g
from sqlalchemy.exc import IntegrityError

from models import storage
from models.account_store import AccountStore
from models.schemas.user import (
    ChangePasswordSchema,
    UserLoginSchema,
    UserOutSchema,
    UserRegisterSchema,
)
from services.sessions import SessionService
from utils.decorators import current_token_config, jwt_required
from utils.errors import Conflict, InternalFailure, InvalidInput
from utils.media import MediaUploadError, discard_temp_upload, get_uploader, save_temp_upload
from utils.security import hash_password
from utils.session_cookies import (
    clear_session_cookies,
    presented_refresh_token,
    set_session_cookies,
)
from .errors import api_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()


def _sessions() -> SessionService:
    return SessionService(AccountStore(storage), current_token_config())


def _request_data() -> dict:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def _token_body(pair) -> dict:
    return {"accessToken": pair.access_token, "refreshToken": pair.refresh_token}


@bp.post("/register")
def register():
    """
    Register a new user with an avatar and an optional cover image.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Validation error or missing avatar
      409:
        description: Username or email already registered
    """
    data = user_register_schema.load(_request_data())

    store = AccountStore(storage)
    if store.exists(data["username"], data["email"]):
        raise Conflict("User or Email already exists")

    avatar_path = save_temp_upload(request.files.get("avatar"))
    cover_path = save_temp_upload(request.files.get("coverImage"))
    if not avatar_path:
        discard_temp_upload(cover_path)
        raise InvalidInput("Avatar is required")

    uploader = get_uploader()
    avatar = cover = None
    try:
        avatar = uploader.upload_file(avatar_path)
        cover = uploader.upload_file(cover_path) if cover_path else None
    except MediaUploadError as exc:
        # the avatar may already be stored; no account will point at it
        uploader.discard(avatar["url"] if avatar else None)
        raise InternalFailure("Failed to upload images") from exc
    finally:
        discard_temp_upload(avatar_path, cover_path)

    try:
        user = store.create_account(
            username=data["username"],
            email=data["email"],
            full_name=data["full_name"],
            password_hash=hash_password(data["password"]),
            avatar=avatar["url"],
            cover_image=cover["url"] if cover else "",
        )
    except IntegrityError:
        # lost a race with another registration for the same username or email
        uploader.discard(avatar["url"])
        uploader.discard(cover["url"] if cover else None)
        raise
    logger.info("Registered user %s", user.id)
    return api_response(201, user_out_schema.dump(user), "User registered successfully")


@bp.post("/login")
def login():
    """
    Login with username or email: returns both tokens and sets the session cookies
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
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    data = user_login_schema.load(_request_data())
    identifier = data.get("username") or data.get("email")

    user, pair = _sessions().login(identifier, data["password"])

    body = {"user": user_out_schema.dump(user), **_token_body(pair)}
    response, status = api_response(200, body, "User logged in successfully")
    set_session_cookies(response, pair)
    return response, status


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears the session cookies
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
    _sessions().logout(g.current_user.id)

    response, status = api_response(200, {}, "User logged out")
    clear_session_cookies(response)
    return response, status


@bp.post("/refresh-token")
def refresh_token():
    """
    Rotate the refresh token and get a new access token.
    The refreshToken cookie is used when present, otherwise the body field.
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
             refreshToken: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Missing, invalid, expired or revoked refresh token
      409:
        description: The token was rotated by a concurrent request
    """
    pair = _sessions().refresh(presented_refresh_token(request))

    response, status = api_response(200, _token_body(pair), "Access token refreshed")
    set_session_cookies(response, pair)
    return response, status


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password; other sessions are ended.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed, new token pair issued
      401:
        description: Invalid old password
    """
    data = change_password_schema.load(_request_data())

    pair = _sessions().change_password(
        g.current_user.id, data["old_password"], data["new_password"]
    )

    response, status = api_response(200, _token_body(pair), "Password changed successfully")
    set_session_cookies(response, pair)
    return response, status
