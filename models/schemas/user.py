from marshmallow import EXCLUDE, Schema, fields, pre_load, validates, validates_schema, ValidationError, validate


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class _Stripped(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def strip_strings(self, data, **kwargs):
        if isinstance(data, dict):
            return {k: _strip(v) for k, v in data.items()}
        return data


class UserRegisterSchema(_Stripped):
    full_name = fields.String(required=True, data_key="fullName", validate=validate.Length(min=1))
    username = fields.String(required=True, validate=validate.Length(min=1, max=64))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserLoginSchema(_Stripped):
    username = fields.String()
    email = fields.String()
    password = fields.String(required=True, load_only=True)

    @validates_schema
    def require_identifier(self, data, **kwargs):
        if not (data.get("username") or data.get("email")):
            raise ValidationError("Username or Email is required", "username")


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(required=True, data_key="oldPassword", load_only=True)
    new_password = fields.String(required=True, data_key="newPassword", load_only=True)

    @validates("new_password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserUpdateSchema(_Stripped):
    full_name = fields.String(required=True, data_key="fullName", validate=validate.Length(min=1))
    email = fields.Email(required=True)


class UserOutSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
