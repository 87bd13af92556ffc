from __future__ import annotations

import logging
from typing import Tuple

from flask import Blueprint, g, jsonify, request

from blog_api.errors import BadRequest, NotFound
from models import get_storage
from models.schemas.user import UserOutSchema, UserRoleSchema, UserStatusSchema
from models.user import ROLE_ADMIN, ROLES, User
from utils.decorators import authorize

logger = logging.getLogger(__name__)

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)
user_status_schema = UserStatusSchema()
user_role_schema = UserRoleSchema()


def parse_pagination(max_limit: int = MAX_LIMIT) -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
    except ValueError:
        raise BadRequest("page and limit must be integers")
    page = max(page, 1)
    limit = max(1, min(limit, max_limit))
    return page, limit


def _get_user_or_404(user_id: str) -> User:
    user = get_storage().get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


@bp.get("/users")
@authorize(ROLE_ADMIN)
def list_users():
    """
    List users - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
      - { in: query, name: role, type: string, enum: [Admin, Reader] }
      - { in: query, name: active, type: boolean }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    session = get_storage().get_session()
    page, limit = parse_pagination()

    query = session.query(User)
    role = request.args.get("role")
    if role:
        if role not in ROLES:
            raise BadRequest(f"role must be one of {', '.join(ROLES)}")
        query = query.filter(User.role == role)
    active = request.args.get("active")
    if active is not None:
        query = query.filter(User.is_active.is_(active.lower() in ("1", "true", "yes")))

    total = query.count()
    rows = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "success": True,
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    ), 200


@bp.patch("/users/<user_id>/status")
@authorize(ROLE_ADMIN)
def set_status(user_id: str):
    """
    Activate or deactivate a user - admin
    Deactivation also revokes the user's refresh token.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             isActive: { type: boolean }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = user_status_schema.load(payload)

    user = _get_user_or_404(user_id)
    if user.id == g.current_user.id and not data["is_active"]:
        raise BadRequest("You cannot deactivate your own account")

    user.is_active = data["is_active"]
    if not user.is_active:
        user.refresh_token = None
    storage = get_storage()
    storage.new(user)
    storage.save()
    logger.info("user %s %s by admin %s", user.id,
                "activated" if user.is_active else "deactivated", g.current_user.id)

    return jsonify({"success": True, "data": user_out_schema.dump(user)}), 200


@bp.put("/users/<user_id>/role")
@authorize(ROLE_ADMIN)
def set_role(user_id: str):
    """
    Change a user's role - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string, enum: [Admin, Reader] }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = user_role_schema.load(payload)

    user = _get_user_or_404(user_id)
    user.role = data["role"]
    storage = get_storage()
    storage.new(user)
    storage.save()

    return jsonify({"success": True, "data": user_out_schema.dump(user)}), 200
