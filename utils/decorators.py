from __future__ import annotations
import hmac
from functools import wraps
from flask import request, g, current_app
from utils.credentials import get_api_key, get_bearer_token
from utils.errors import AuthenticationFailed


def get_auth():
    """Return the AuthServices bundle registered by create_app()."""
    return current_app.extensions["chirpy_auth"]


def jwt_required():
    """Require a valid access token; exposes the user id as g.current_user_id."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = get_bearer_token(request.headers)
            g.current_user_id = get_auth().access_tokens.validate(token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def api_key_required():
    """Require `Authorization: ApiKey <key>` matching the configured key."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            key = get_api_key(request.headers)
            expected = get_auth().settings.api_key
            if not hmac.compare_digest(key.encode(), expected.encode()):
                raise AuthenticationFailed("bad_api_key", "Invalid API key")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
