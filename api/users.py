from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.errors import AuthenticationFailed
from utils.security import hash_password
from utils.sessions import store_call

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()


def _email_taken(email: str, exclude_id: str | None = None) -> bool:
    with store_call(storage, "user lookup"):
        existing = storage.get_user_by_email(email)
    return existing is not None and existing.id != exclude_id


@bp.post("/users")
def create_user():
    """
    Register a new user.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    if _email_taken(data["email"]):
        abort(409, description="Email already registered")

    user = User(email=data["email"], password_hash=hash_password(data["password"]))
    with store_call(storage, "user insert"):
        storage.new(user)
        storage.save()
    return jsonify(user_out_schema.dump(user)), 201


@bp.put("/users")
@jwt_required()
def update_user():
    """
    Update the authenticated user's email and password.
    ---
    tags:
      - Users
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
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      409:
        description: Email already registered
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    user = storage.get(User, g.current_user_id)
    if user is None:
        # token was valid but the account is gone
        raise AuthenticationFailed("unknown_user", "Invalid token")
    if _email_taken(data["email"], exclude_id=user.id):
        abort(409, description="Email already registered")

    user.email = data["email"]
    user.password_hash = hash_password(data["password"])
    with store_call(storage, "user update"):
        user.save()
    return jsonify(user_out_schema.dump(user)), 200
