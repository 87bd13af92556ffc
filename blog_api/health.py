from datetime import datetime, timezone

from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            success:
              type: boolean
            environment:
              type: string
            version:
              type: string
              example: 1.0.0
    """
    return {
        "success": True,
        "message": "Blog Platform API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": current_app.config.get("APP_ENV"),
        "version": "1.0.0",
    }, 200
