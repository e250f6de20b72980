"""
Polka payment webhooks. Polka authenticates with `Authorization: ApiKey <key>`.
Only `user.upgraded` does anything; other events are acknowledged and ignored.
"""
from flask import Blueprint, request, abort

from models import storage
from models.user import User
from models.schemas.webhook import PolkaEventSchema, USER_UPGRADED
from utils.decorators import api_key_required

bp = Blueprint("webhooks", __name__)

polka_event_schema = PolkaEventSchema()


@bp.post("/polka/webhooks")
@api_key_required()
def polka_webhook():
    """
    Receive a Polka event
    ---
    tags:
      - Webhooks
    security:
      - ApiKey: []
    responses:
      204:
        description: Event accepted
      401:
        description: Missing or invalid API key
      404:
        description: User not found
    """
    event = polka_event_schema.load(request.get_json(silent=True) or {})
    if event["event"] != USER_UPGRADED:
        return ("", 204)

    user_id = event["data"].get("user_id")
    if user_id is None:
        abort(422, description="data.user_id is required")
    user = storage.get(User, str(user_id))
    if user is None:
        abort(404, description="User not found")

    user.is_chirpy_red = True
    user.save()
    return ("", 204)
