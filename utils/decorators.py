from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, g, request

from blog_api.errors import AccountDeactivated, ApiError, Forbidden, InvalidToken, NotFound, Unauthenticated
from models import get_storage
from models.ownable import is_ownable_model
from models.user import User
from utils.security import ACCESS, decode_token

logger = logging.getLogger(__name__)


def extract_access_token() -> str | None:
    """Bearer header first, then the access-token cookie."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(current_app.config["ACCESS_COOKIE_NAME"]) or None


def resolve_user(token: str) -> User:
    """
    Verify an access token and load its user.
    Raises TokenExpired, InvalidToken or AccountDeactivated.
    """
    decoded = decode_token(token, expected_type=ACCESS)
    user = get_storage().get(User, decoded.get("userId"))
    if not user:
        raise InvalidToken("Invalid token. User not found.")
    if not user.is_active:
        raise AccountDeactivated()
    return user


def authenticate():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = extract_access_token()
            if not token:
                raise Unauthenticated()
            g.current_user = resolve_user(token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def optional_auth():
    """
    Attach the caller when a usable token is present, otherwise continue
    anonymously with g.current_user = None. Never rejects the request.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = None
            token = extract_access_token()
            if token:
                try:
                    g.current_user = resolve_user(token)
                except ApiError as e:
                    logger.debug("optional auth ignored token: %s", e.code)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def authorize(*roles: str):
    """
    Allow access only if the authenticated user's role is one of `roles`.
    """
    allowed = set(roles)

    def decorator(fn):
        @wraps(fn)
        @authenticate()
        def wrapper(*args, **kwargs):
            user = g.current_user
            if user.role not in allowed:
                raise Forbidden(
                    f"Access denied. Required role: {' or '.join(roles)}. Your role: {user.role}"
                )
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def check_ownership(model, id_param: str = "id"):
    """
    Load `model` by the URL parameter `id_param` and require the caller to own it.
    Admins bypass the owner comparison, but a missing resource is a 404 for everyone.
    The loaded resource is exposed as g.resource.
    """
    if not is_ownable_model(model):
        raise TypeError(f"{model!r} does not implement owner_id()")

    def decorator(fn):
        @wraps(fn)
        @authenticate()
        def wrapper(*args, **kwargs):
            user = g.current_user
            resource = get_storage().get(model, kwargs.get(id_param))
            if resource is None:
                raise NotFound(f"{model.__name__} not found")
            if not user.is_admin and resource.owner_id() != user.id:
                logger.info("ownership denied: user=%s %s=%s", user.id, model.__name__, resource.id)
                raise Forbidden("Access denied. You can only access your own resources.")
            g.resource = resource
            return fn(*args, **kwargs)

        return wrapper

    return decorator
