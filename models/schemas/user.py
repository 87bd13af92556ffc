from marshmallow import EXCLUDE, Schema, fields, pre_load, validates, validate

from models.schemas.common import normalize_email, strip_string, validate_name, validate_password
from models.user import ROLES


class UserCreateSchema(Schema):
    class Meta:
        # Signup forms also post confirmPassword and the like
        unknown = EXCLUDE

    name = fields.String(required=True)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = normalize_email(data["email"])
            if "name" in data:
                data["name"] = strip_string(data["name"])
        return data

    @validates("name")
    def check_name(self, value, **kwargs):
        validate_name(value)

    @validates("password")
    def check_password(self, value, **kwargs):
        validate_password(value)


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = normalize_email(data["email"])
        return data


class ProfileUpdateSchema(Schema):
    name = fields.String()
    avatar = fields.String(validate=validate.Length(max=500))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "name" in data:
            data = dict(data)
            data["name"] = strip_string(data["name"])
        return data

    @validates("name")
    def check_name(self, value, **kwargs):
        validate_name(value)


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, data_key="currentPassword", load_only=True)
    new_password = fields.String(required=True, data_key="newPassword", load_only=True)

    @validates("new_password")
    def check_new_password(self, value, **kwargs):
        validate_password(value)


class UserStatusSchema(Schema):
    is_active = fields.Boolean(required=True, data_key="isActive")


class UserRoleSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLES))


class UserOutSchema(Schema):
    """Public projection of a user; password hash and refresh token never leave the server."""
    id = fields.String()
    name = fields.String()
    email = fields.String()
    role = fields.String()
    avatar = fields.String()
    is_active = fields.Boolean(data_key="isActive")
    last_login = fields.DateTime(data_key="lastLogin", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
