from flask import Blueprint, g, jsonify
from sqlalchemy import or_

from models import get_storage
from models.comment import Comment
from utils.decorators import check_ownership

bp = Blueprint("comments", __name__)


@bp.delete("/comments/<id>")
@check_ownership(Comment)
def delete_comment(id: str):
    """
    Delete a comment and its replies - commenter or admin
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    parameters:
      - { in: path, name: id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Not the commenter }
      404: { description: Not found }
    """
    storage = get_storage()
    session = storage.get_session()
    session.query(Comment).filter(
        or_(Comment.id == g.resource.id, Comment.parent_id == g.resource.id)
    ).delete(synchronize_session=False)
    storage.save()

    return jsonify({"success": True, "message": "Comment deleted successfully"}), 200
