from marshmallow import Schema, fields, pre_load, validates, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class UserUpdateSchema(UserCreateSchema):
    pass


class UserLoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    is_chirpy_red = fields.Boolean()


class LoginOutSchema(UserOutSchema):
    token = fields.String()
    refresh_token = fields.String()
