"""
Transport session: the two cookies that carry the token pair.
Every flow that sets or clears them goes through this module so the names
and attributes always match.
"""
from __future__ import annotations

from flask import current_app

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
REFRESH_TOKEN_FIELD = "refreshToken"
SESSION_COOKIES = (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE)


def cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": bool(current_app.config.get("COOKIE_SECURE", True)),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }


def set_session_cookies(response, pair):
    options = cookie_options()
    response.set_cookie(ACCESS_TOKEN_COOKIE, pair.access_token, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, pair.refresh_token, **options)
    return response


def clear_session_cookies(response):
    options = cookie_options()
    for name in SESSION_COOKIES:
        response.delete_cookie(name, **options)
    return response


def presented_refresh_token(request) -> str | None:
    """Cookie wins over the request body when both carry a token."""
    token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if token:
        return token
    payload = request.get_json(silent=True) or {}
    token = payload.get(REFRESH_TOKEN_FIELD) if isinstance(payload, dict) else None
    return token or request.form.get(REFRESH_TOKEN_FIELD) or None


def presented_access_token(request) -> str | None:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None
