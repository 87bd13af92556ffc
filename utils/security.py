"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access/refresh JWT creation and verification via PyJWT

Access and refresh tokens are signed with different secrets and carry a
"type" claim, so neither can be replayed as the other.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, NamedTuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from flask import current_app

from blog_api.errors import InvalidToken, TokenExpired

ACCESS = "access"
REFRESH = "refresh"

ph = PasswordHasher()


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password using argon2.
    Accounts without a password (OAuth-linked) never verify.
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _settings(token_type: str):
    config = current_app.config
    if token_type == ACCESS:
        return config["JWT_SECRET"], config["JWT_ACCESS_EXPIRES"]
    if token_type == REFRESH:
        return config["JWT_REFRESH_SECRET"], config["JWT_REFRESH_EXPIRES"]
    raise ValueError(f"Unknown token type: {token_type}")


def _create_token(user_id: str, token_type: str) -> str:
    secret, lifetime = _settings(token_type)
    now = _now()
    payload = {
        "userId": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
        "type": token_type,
        "jti": generate_jti(),
    }
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def create_access_token(user_id: str) -> str:
    return _create_token(user_id, ACCESS)


def create_refresh_token(user_id: str) -> str:
    return _create_token(user_id, REFRESH)


def generate_tokens(user_id: str) -> TokenPair:
    """
    Mint an access/refresh pair for a user.
    Persisting the refresh token on the user is the caller's job.
    """
    return TokenPair(create_access_token(user_id), create_refresh_token(user_id))


def decode_token(token: str, expected_type: str = ACCESS) -> Dict[str, Any]:
    """
    Decode and validate a JWT against the secret for `expected_type`.
    Raises TokenExpired once past exp, InvalidToken for anything else wrong.
    """
    secret, _ = _settings(expected_type)
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "userId"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError:
        raise InvalidToken()

    if decoded.get("type") != expected_type:
        raise InvalidToken()
    return decoded


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when a login email is unknown, so response time does not reveal account existence."""
    return ph.hash("unused-dummy-password")
