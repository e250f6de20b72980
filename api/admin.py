import logging

from flask import Blueprint, current_app, abort

from models import storage
from models.refresh_token import RefreshToken
from models.user import User

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)


@bp.post("/reset")
def reset():
    """
    Delete every user and session. Only available when PLATFORM=dev.
    ---
    tags:
      - Admin
    responses:
      200:
        description: Database reset
      403:
        description: Not a dev platform
    """
    if current_app.config.get("PLATFORM") != "dev":
        abort(403, description="Reset is only allowed on the dev platform")

    tokens = storage.delete_all(RefreshToken)
    users = storage.delete_all(User)
    storage.save()
    logger.warning("Reset removed %d users and %d refresh tokens", users, tokens)
    return {"users_deleted": users}, 200
