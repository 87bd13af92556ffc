"""
tests/conftest.py -- Shared fixtures for the blog API tests.

Every test gets its own application built by create_app("testing"). The
testing config points DBStorage at an in-memory SQLite database held on a
single StaticPool connection, so each app starts from an empty schema and
nothing leaks between tests.

The shared rate limiter is reset for each app so per-IP counters start at zero.

Factories (make_user, make_blog, make_comment) write straight through
DBStorage inside an app context and return detached instances; the session
is created with expire_on_commit=False so their attributes stay readable.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from blog_api import create_app
from blog_api.limiter import limiter
from models import get_storage
from models.blog import Blog
from models.comment import Comment
from models.user import User
from utils.security import create_access_token, hash_password

PASSWORD = "Secret123"


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        limiter.reset()
    yield app
    with app.app_context():
        get_storage().drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(name: str = "Alice Reader", email: str | None = None, password: str | None = PASSWORD,
              role: str = "Reader", is_active: bool = True) -> User:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        with app.app_context():
            storage = get_storage()
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password) if password else None,
                role=role,
                is_active=is_active,
            )
            storage.new(user)
            storage.save()
            return user

    return _make


@pytest.fixture
def make_blog(app):
    def _make(author: User, title: str = "A post about sessions", status: str = "published") -> Blog:
        with app.app_context():
            storage = get_storage()
            blog = Blog(
                title=title,
                slug=f"{uuid.uuid4().hex[:10]}",
                status=status,
                author_id=author.id,
            )
            blog.set_content("word " * 60)
            storage.new(blog)
            storage.save()
            return blog

    return _make


@pytest.fixture
def make_comment(app):
    def _make(blog: Blog, user: User, parent: Comment | None = None) -> Comment:
        with app.app_context():
            storage = get_storage()
            comment = Comment(
                blog_id=blog.id,
                user_id=user.id,
                text="Nice write-up",
                parent_id=parent.id if parent else None,
            )
            storage.new(comment)
            storage.save()
            return comment

    return _make


@pytest.fixture
def auth_headers(app):
    """Return a callable producing a Bearer header with a fresh access token for a user."""

    def _headers(user: User) -> dict:
        with app.app_context():
            return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def expired_token(app):
    """Return a callable minting an already-expired token signed with the right secret."""

    def _token(user_id: str, token_type: str = "access") -> str:
        secret = app.config["JWT_SECRET"] if token_type == "access" else app.config["JWT_REFRESH_SECRET"]
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user_id,
            "type": token_type,
            "iat": int((now - timedelta(hours=2)).timestamp()),
            "exp": int((now - timedelta(hours=1)).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=app.config["JWT_ALGORITHM"])

    return _token


def login(client, email: str, password: str = PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})
