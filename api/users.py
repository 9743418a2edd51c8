from __future__ import annotations

from flask import Blueprint, request, g
from sqlalchemy.exc import IntegrityError

from models import storage
from models.account_store import AccountStore
from models.schemas.user import UserOutSchema, UserUpdateSchema
from utils.decorators import jwt_required
from utils.errors import Conflict, InternalFailure, InvalidInput, NotFound
from utils.media import MediaUploadError, get_uploader, save_temp_upload

from .errors import api_response

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


def _replace_image(field: str, form_name: str, label: str):
    local_path = save_temp_upload(request.files.get(form_name))
    if not local_path:
        raise InvalidInput(f"{label} file is missing")
    try:
        uploaded = get_uploader().upload_file(local_path)
    except MediaUploadError as exc:
        raise InternalFailure(f"Error while uploading {label.lower()}") from exc

    user = AccountStore(storage).update_profile(g.current_user.id, **{field: uploaded["url"]})
    if user is None:
        raise NotFound("User does not exist")
    return user


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, user_out_schema.dump(g.current_user), "Current user fetched successfully")


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and email of the current user.
    ---
    tags:
      - Users
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
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      409: { description: Email already in use }
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})

    store = AccountStore(storage)
    if store.email_taken(data["email"], exclude_id=g.current_user.id):
        raise Conflict("Email already in use")

    try:
        user = store.update_profile(
            g.current_user.id, full_name=data["full_name"], email=data["email"]
        )
    except IntegrityError as exc:
        # another account claimed the email between the check and the write
        raise Conflict("Email already in use") from exc
    if user is None:
        raise NotFound("User does not exist")
    return api_response(200, user_out_schema.dump(user), "Account details updated successfully")


@bp.patch("/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the current user's avatar.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Avatar file is missing }
    """
    user = _replace_image("avatar", "avatar", "Avatar")
    return api_response(200, user_out_schema.dump(user), "Avatar updated successfully")


@bp.patch("/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the current user's cover image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Cover image file is missing }
    """
    user = _replace_image("cover_image", "coverImage", "Cover image")
    return api_response(200, user_out_schema.dump(user), "Cover image updated successfully")
