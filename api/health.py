from flask import Blueprint

bp = Blueprint("health", __name__)


@bp.get("/healthz")
def health():
    """
    Readiness check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
    """
    return {"status": "ok"}, 200
