"""
client/session.py -- HTTP client for the blog API with silent token refresh.

The client keeps the access token in a SessionStore and sends it as a bearer
header; the refresh token lives in the httpx cookie jar (the server sets it as
an HTTP-only cookie scoped to /api/auth).

Refresh policy: a 401 carrying code TOKEN_EXPIRED triggers exactly one call to
/auth/refresh. If that succeeds the original request is replayed once with the
new access token and whatever the replay returns is final. If it fails the
local session is cleared and SessionExpired is raised. Any other 401 is
terminal and also clears the session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TOKEN_EXPIRED = "TOKEN_EXPIRED"


class ApiRequestError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, code: str | None = None, payload: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.payload = payload or {}


class SessionExpired(ApiRequestError):
    """The access token expired and could not be refreshed; log in again."""

    def __init__(self, message: str = "Session expired. Please login again."):
        super().__init__(401, message, code="SESSION_EXPIRED")


@dataclass
class SessionStore:
    access_token: str | None = None
    user: dict | None = field(default=None)

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def set(self, access_token: str, user: dict | None = None) -> None:
        self.access_token = access_token
        if user is not None:
            self.user = user

    def clear(self) -> None:
        self.access_token = None
        self.user = None


def _payload(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class ApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        http: httpx.Client | None = None,
        store: SessionStore | None = None,
        timeout: float = 10.0,
        api_prefix: str = "/api",
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout))
        self.store = store or SessionStore()
        self.api_prefix = api_prefix.rstrip("/")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self.http.close()

    def _drop_session(self) -> None:
        """Forget the access token, the user and the auth cookies."""
        self.store.clear()
        self.http.cookies.clear()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.store.access_token:
            headers["Authorization"] = f"Bearer {self.store.access_token}"
        return self.http.request(method, self._url(path), headers=headers, **kwargs)

    def _result(self, response: httpx.Response) -> dict:
        data = _payload(response)
        if response.is_success:
            return data
        if response.status_code == 401:
            self._drop_session()
        raise ApiRequestError(
            response.status_code,
            data.get("message") or f"HTTP error! status: {response.status_code}",
            code=data.get("code"),
            payload=data,
        )

    def refresh(self) -> bool:
        """Exchange the refresh cookie for a new access token. Never raises for HTTP failures."""
        try:
            response = self.http.post(self._url("/auth/refresh"))
        except httpx.HTTPError as e:
            logger.warning("token refresh error: %s", e)
            return False
        data = _payload(response)
        token = (data.get("data") or {}).get("accessToken")
        if response.is_success and data.get("success") and token:
            self.store.set(token)
            return True
        logger.info("token refresh rejected: status=%s code=%s", response.status_code, data.get("code"))
        return False

    def request(self, method: str, path: str, **kwargs) -> dict:
        """
        Send a request; on TOKEN_EXPIRED refresh once and replay once.
        Raises ApiRequestError for error responses and SessionExpired when the
        refresh fails.
        """
        response = self._send(method, path, **kwargs)
        if response.status_code == 401 and _payload(response).get("code") == TOKEN_EXPIRED:
            if not self.refresh():
                self._drop_session()
                raise SessionExpired()
            response = self._send(method, path, **kwargs)
        return self._result(response)

    def get(self, path: str, **kwargs) -> dict:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs) -> dict:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs) -> dict:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> dict:
        return self.request("DELETE", path, **kwargs)

    def _start(self, data: dict) -> dict:
        body = data.get("data") or {}
        self.store.set(body["accessToken"], body.get("user"))
        return body.get("user") or {}

    def register(self, name: str, email: str, password: str) -> dict:
        data = self._result(self.http.post(self._url("/auth/register"), json={"name": name, "email": email, "password": password}))
        return self._start(data)

    def login(self, email: str, password: str) -> dict:
        data = self._result(self.http.post(self._url("/auth/login"), json={"email": email, "password": password}))
        return self._start(data)

    def logout(self) -> None:
        """Tell the server to revoke the refresh token; local state is cleared regardless."""
        try:
            if self.store.access_token:
                self._send("POST", "/auth/logout")
        except httpx.HTTPError as e:
            logger.warning("logout error: %s", e)
        finally:
            self._drop_session()

    def me(self) -> dict:
        user = self.get("/auth/me")["data"]["user"]
        self.store.user = user
        return user

    def update_profile(self, **fields) -> dict:
        user = self.put("/auth/profile", json=fields)["data"]["user"]
        self.store.user = user
        return user

    def change_password(self, current_password: str, new_password: str) -> dict:
        data = self.post(
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        return self._start(data)
