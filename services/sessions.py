"""
Session flows: login, logout, refresh and change-password.

Every account has at most one live refresh token, stored on its users row.
Login and refresh replace it, logout clears it, and a refresh token that is
validly signed but not equal to the stored one is treated as revoked.
A new refresh token is written and confirmed before the flow returns it.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Tuple

from models.account_store import AccountStore, StoreError
from models.user import User
from utils.errors import (
    Conflict,
    InternalFailure,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    TokenExpired,
    Unauthorized,
)
from utils.security import (
    ACCESS,
    REFRESH,
    TokenConfig,
    TokenError,
    hash_password,
    issue_token,
    password_needs_rehash,
    verify_password,
    verify_token,
)

logger = logging.getLogger(__name__)


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


class SessionService:
    def __init__(self, store: AccountStore, token_config: TokenConfig):
        self.store = store
        self.token_config = token_config

    def _issue_pair(self, user: User) -> TokenPair:
        access = issue_token(
            self.token_config,
            user.id,
            ACCESS,
            {"username": user.username, "email": user.email, "fullName": user.full_name},
        )
        refresh = issue_token(self.token_config, user.id, REFRESH)
        return TokenPair(access, refresh)

    def _persist_refresh_token(self, user_id: str, token: str) -> None:
        try:
            stored = self.store.set_refresh_token(user_id, token)
        except StoreError as exc:
            raise InternalFailure(
                "Something went wrong while generating access and refresh token"
            ) from exc
        if not stored:
            raise NotFound("User does not exist")

    def login(self, identifier: str, password: str) -> Tuple[User, TokenPair]:
        user = self.store.find_by_credential_key(identifier)
        if user is None:
            raise NotFound("User does not exist")
        if not verify_password(password, user.password_hash):
            logger.info("Rejected login for user %s", user.id)
            raise InvalidCredentials()

        if password_needs_rehash(user.password_hash):
            self._set_credential_hash(user.id, hash_password(password))

        pair = self._issue_pair(user)
        self._persist_refresh_token(user.id, pair.refresh_token)
        logger.info("User %s logged in", user.id)
        return user, pair

    def logout(self, user_id: str) -> None:
        try:
            cleared = self.store.set_refresh_token(user_id, None)
        except StoreError as exc:
            raise InternalFailure("Could not end the session") from exc
        if not cleared:
            raise NotFound("User does not exist")
        logger.info("User %s logged out", user_id)

    def refresh(self, presented: str | None) -> TokenPair:
        if not presented:
            raise Unauthorized()

        try:
            user_id = verify_token(self.token_config, presented, REFRESH)
        except TokenError as exc:
            raise InvalidToken() from exc

        user = self.store.find_by_id(user_id)
        if user is None:
            raise InvalidToken()

        if presented != user.refresh_token:
            logger.warning("Revoked refresh token presented for user %s", user_id)
            raise TokenExpired()

        pair = self._issue_pair(user)
        try:
            replaced = self.store.replace_refresh_token(user_id, presented, pair.refresh_token)
        except StoreError as exc:
            raise InternalFailure(
                "Something went wrong while generating access and refresh token"
            ) from exc
        if not replaced:
            # another request rotated (or a logout cleared) the token after our check
            logger.warning("Concurrent refresh lost for user %s", user_id)
            raise Conflict("Refresh token was already rotated by another request")

        logger.info("Rotated refresh token for user %s", user_id)
        return pair

    def change_password(self, user_id: str, old_password: str, new_password: str) -> TokenPair:
        """
        Replace the password of an authenticated account.
        The stored refresh token is rotated too, so every other session ends
        and only the pair returned here stays usable.
        """
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound("User does not exist")
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentials("Invalid old password")

        pair = self._issue_pair(user)
        try:
            updated = self.store.set_credentials(
                user.id, hash_password(new_password), pair.refresh_token
            )
        except StoreError as exc:
            raise InternalFailure("Could not update password") from exc
        if not updated:
            raise NotFound("User does not exist")
        logger.info("Password changed for user %s", user_id)
        return pair

    def _set_credential_hash(self, user_id: str, password_hash: str) -> None:
        try:
            updated = self.store.set_credential_hash(user_id, password_hash)
        except StoreError as exc:
            raise InternalFailure("Could not update password") from exc
        if not updated:
            raise NotFound("User does not exist")
