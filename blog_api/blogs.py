from __future__ import annotations

import logging

from flask import Blueprint, g, jsonify, request

from blog_api.errors import BadRequest, NotFound
from blog_api.limiter import blog_create_limit, limiter
from blog_api.users import parse_pagination
from models import get_storage
from models.blog import BLOG_STATUSES, Blog, generate_slug
from models.comment import Comment
from models.rating import Rating
from models.schemas.blog import BlogCreateSchema, BlogOutSchema, BlogUpdateSchema
from models.user import ROLE_ADMIN
from utils.decorators import authenticate, authorize, check_ownership, optional_auth

logger = logging.getLogger(__name__)

MAX_LIMIT = 50

bp = Blueprint("blogs", __name__)

blog_create_schema = BlogCreateSchema()
blog_update_schema = BlogUpdateSchema()
blog_out_schema = BlogOutSchema()
blogs_out_schema = BlogOutSchema(many=True)


def unique_slug(title: str, exclude_id: str | None = None) -> str:
    """Slug for `title`, suffixed -1, -2, ... until no other blog uses it."""
    session = get_storage().get_session()
    base = generate_slug(title) or "post"
    slug, counter = base, 1
    while True:
        query = session.query(Blog.id).filter(Blog.slug == slug)
        if exclude_id:
            query = query.filter(Blog.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


@bp.get("/blogs")
@optional_auth()
def list_blogs():
    """
    List blogs. Anonymous callers and readers only see published posts;
    admins see everything and may filter by status.
    ---
    tags:
      - Blogs
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
      - { in: query, name: status, type: string, enum: [draft, published, archived] }
    responses:
      200: { description: OK }
    """
    session = get_storage().get_session()
    page, limit = parse_pagination(MAX_LIMIT)

    query = session.query(Blog)
    user = g.current_user
    status = request.args.get("status")
    if user is not None and user.is_admin:
        if status:
            if status not in BLOG_STATUSES:
                raise BadRequest("Invalid status")
            query = query.filter(Blog.status == status)
    else:
        query = query.filter(Blog.status == "published")

    total = query.count()
    rows = query.order_by(Blog.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    response = jsonify(
        {
            "success": True,
            "data": blogs_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    )
    response.headers["X-Total-Count"] = str(total)
    return response


@bp.get("/blogs/<id>")
@optional_auth()
def get_blog(id: str):
    """
    Read a single blog and count the view. Unpublished posts are only
    visible to their author and to admins.
    ---
    tags:
      - Blogs
    parameters:
      - { in: path, name: id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    storage = get_storage()
    blog = storage.get(Blog, id)
    user = g.current_user
    can_see_unpublished = user is not None and (
        user.is_admin or (blog is not None and blog.owner_id() == user.id)
    )
    if blog is None or (blog.status != "published" and not can_see_unpublished):
        raise NotFound("Blog not found")

    storage.increment(Blog, id, "views")
    storage.get_session().refresh(blog)
    return jsonify({"success": True, "data": blog_out_schema.dump(blog)}), 200


@bp.post("/blogs")
@limiter.limit(blog_create_limit, error_message="Too many blog posts created. Please try again later.")
@authorize(ROLE_ADMIN)
def create_blog():
    """
    Create a blog - admin
    ---
    tags:
      - Blogs
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title: { type: string, minLength: 5, maxLength: 200 }
            content: { type: string, minLength: 50 }
            excerpt: { type: string, maxLength: 500 }
            status: { type: string, enum: [draft, published] }
            featured_image: { type: string }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      403: { description: Forbidden }
    """
    payload = request.get_json(silent=True) or {}
    data = blog_create_schema.load(payload)

    blog = Blog(
        title=data["title"],
        slug=unique_slug(data["title"]),
        excerpt=data.get("excerpt"),
        status=data["status"],
        featured_image=data.get("featured_image", ""),
        author_id=g.current_user.id,
    )
    blog.set_content(data["content"])
    storage = get_storage()
    storage.new(blog)
    storage.save()

    return jsonify({"success": True, "message": "Blog created successfully", "data": blog_out_schema.dump(blog)}), 201


@bp.put("/blogs/<id>")
@check_ownership(Blog)
def update_blog(id: str):
    """
    Update a blog - author or admin
    ---
    tags:
      - Blogs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: id, type: string, required: true }
    responses:
      200: { description: OK }
      403: { description: Not the author }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = blog_update_schema.load(payload)

    blog = g.resource
    if "title" in data and data["title"] != blog.title:
        blog.slug = unique_slug(data["title"], exclude_id=blog.id)
    for field in ("title", "excerpt", "status", "featured_image"):
        if field in data:
            setattr(blog, field, data[field])
    if "content" in data:
        blog.set_content(data["content"])

    storage = get_storage()
    storage.new(blog)
    storage.save()

    return jsonify({"success": True, "message": "Blog updated successfully", "data": blog_out_schema.dump(blog)}), 200


@bp.delete("/blogs/<id>")
@check_ownership(Blog)
def delete_blog(id: str):
    """
    Delete a blog with its comments and ratings - author or admin
    ---
    tags:
      - Blogs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: id, type: string, required: true }
    responses:
      200: { description: Deleted }
      403: { description: Not the author }
      404: { description: Not found }
    """
    storage = get_storage()
    session = storage.get_session()
    blog = g.resource
    session.query(Comment).filter(Comment.blog_id == blog.id).delete(synchronize_session=False)
    session.query(Rating).filter(Rating.blog_id == blog.id).delete(synchronize_session=False)
    storage.delete(blog)
    storage.save()
    logger.info("blog %s deleted by user %s", id, g.current_user.id)

    return jsonify({"success": True, "message": "Blog deleted successfully"}), 200


@bp.post("/blogs/<id>/like")
@authenticate()
def like_blog(id: str):
    """
    Like a blog
    ---
    tags:
      - Blogs
    security:
      - Bearer: []
    parameters:
      - { in: path, name: id, type: string, required: true }
    responses:
      200: { description: Liked }
      404: { description: Not found }
    """
    if not get_storage().increment(Blog, id, "likes"):
        raise NotFound("Blog not found")
    return jsonify({"success": True, "message": "Blog liked successfully"}), 200
