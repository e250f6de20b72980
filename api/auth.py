"""
Authentication blueprint:
- POST /login   -> access token + refresh token
- POST /refresh -> new access token (Authorization: Bearer <refresh_token>)
- POST /revoke  -> revoke a refresh token (Authorization: Bearer <refresh_token>)

Access tokens are HS256 JWTs (utils.security); refresh tokens are opaque random
strings persisted in the refresh_tokens table (utils.sessions).
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify

from models import storage
from models.schemas.user import UserLoginSchema, LoginOutSchema
from utils.credentials import get_bearer_token
from utils.decorators import get_auth
from utils.errors import AuthenticationFailed
from utils.security import burn_password_check, hash_password, password_needs_rehash, verify_password
from utils.sessions import store_call

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_login_schema = UserLoginSchema()
login_out_schema = LoginOutSchema()

BAD_LOGIN = "Incorrect email or password"


@bp.post("/login")
def login():
    """
    Login: return access token and refresh token
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
        description: OK (returns user plus token and refresh_token)
      401:
        description: Unauthorized
      422:
        description: Validation error
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    email, password = payload["email"], payload["password"]

    with store_call(storage, "user lookup"):
        user = storage.get_user_by_email(email)
    if user is None:
        burn_password_check(password)
        raise AuthenticationFailed("unknown_email", BAD_LOGIN)
    if not verify_password(password, user.password_hash):
        raise AuthenticationFailed("bad_password", BAD_LOGIN)

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        with store_call(storage, "password rehash"):
            user.save()

    auth = get_auth()
    access_token = auth.access_tokens.issue(user.id)
    refresh_token, _ = auth.refresh_tokens.issue(user.id)
    logger.info("User %s logged in", user.id)

    data = login_out_schema.dump(user)
    data.update(token=access_token, refresh_token=refresh_token)
    return jsonify(data), 200


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain a new access token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK (returns token)
      401:
        description: Invalid session
    """
    token = get_bearer_token(request.headers)
    auth = get_auth()
    user_id = auth.refresh_tokens.resolve(token)
    return jsonify({"token": auth.access_tokens.issue(user_id)}), 200


@bp.post("/revoke")
def revoke():
    """
    Revoke a refresh token. Revoking an unknown or already revoked token succeeds.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Missing or invalid Authorization header
    """
    token = get_bearer_token(request.headers)
    get_auth().refresh_tokens.revoke(token)
    return ("", 204)
