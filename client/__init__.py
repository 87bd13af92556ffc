from client.session import ApiClient, ApiRequestError, SessionExpired, SessionStore

__all__ = ["ApiClient", "ApiRequestError", "SessionExpired", "SessionStore"]
