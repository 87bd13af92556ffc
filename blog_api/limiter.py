"""
Shared Flask-Limiter instance.

create_app() binds it with limiter.init_app(app); blueprints import it to
attach per-route limits. One instance means one counter store per app.
Limits and storage come from the RATELIMIT_* config keys.
"""
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

AUTH_LIMIT_MESSAGE = "Too many authentication attempts. Please try again later."
GENERAL_LIMIT_MESSAGE = "Too many requests from this IP. Please try again later."

limiter = Limiter(key_func=get_remote_address)


def auth_limit() -> str:
    return current_app.config["AUTH_RATE_LIMIT"]


def blog_create_limit() -> str:
    return current_app.config["BLOG_CREATE_RATE_LIMIT"]


def failed_only(response) -> bool:
    """Only failed attempts count against the auth limit."""
    return response.status_code >= 400
