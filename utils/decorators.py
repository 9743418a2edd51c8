from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from models import storage
from models.account_store import AccountStore
from utils.errors import InvalidToken, Unauthorized
from utils.security import ACCESS, TokenError, TokenExpiredError, decode_token
from utils.session_cookies import presented_access_token


def current_token_config():
    """TokenConfig built by create_app() at start-up."""
    return current_app.extensions["token_config"]


def jwt_required():
    """
    Accept the access token from the accessToken cookie or an Authorization
    bearer header. Access tokens are checked by signature and expiry only.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = presented_access_token(request)
            if not token:
                raise Unauthorized()
            try:
                decoded = decode_token(current_token_config(), token, ACCESS)
            except TokenExpiredError as e:
                raise Unauthorized("Access token expired") from e
            except TokenError as e:
                raise InvalidToken("Invalid access token") from e

            user = AccountStore(storage).find_by_id(decoded.get("sub"))
            if not user:
                raise InvalidToken("Invalid access token")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
