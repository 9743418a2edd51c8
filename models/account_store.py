"""
AccountStore: the narrow persistence interface the session flows rely on.

Refresh-token writes are single UPDATE statements against the users row, so
two writers for the same account can never both think they own the stored
token. replace_refresh_token() is the conditional form used for rotation: it
only writes when the stored value still equals the token the caller presented.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import User

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """A write to the account store could not be confirmed."""


class AccountStore:
    def __init__(self, storage):
        self._storage = storage

    @property
    def _session(self):
        return self._storage.get_session()

    # reads

    def find_by_credential_key(self, identifier: str) -> User | None:
        """Look an account up by username or email."""
        if not identifier:
            return None
        stmt = select(User).where(
            or_(User.username == identifier, User.email == identifier)
        ).execution_options(populate_existing=True)
        return self._session.execute(stmt).scalars().first()

    def find_by_id(self, user_id: str) -> User | None:
        if not user_id:
            return None
        return self._session.get(User, user_id, populate_existing=True)

    def exists(self, username: str, email: str) -> bool:
        stmt = select(User.id).where(or_(User.username == username, User.email == email))
        return self._session.execute(stmt).first() is not None

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        stmt = select(User.id).where(User.email == email)
        if exclude_id:
            stmt = stmt.where(User.id != exclude_id)
        return self._session.execute(stmt).first() is not None

    # writes

    def create_account(self, **fields) -> User:
        """Insert a new account; IntegrityError propagates on a duplicate key."""
        user = User(**fields)
        self._storage.new(user)
        self._storage.save()
        return user

    def update_profile(self, user_id: str, **fields) -> User | None:
        if not self._update(user_id, **fields):
            return None
        return self.find_by_id(user_id)

    def set_refresh_token(self, user_id: str, token: str | None) -> bool:
        return self._update(user_id, refresh_token=token)

    def replace_refresh_token(self, user_id: str, expected: str, new: str) -> bool:
        """Store new only if the stored token is still expected."""
        return self._update(user_id, User.refresh_token == expected, refresh_token=new)

    def set_credential_hash(self, user_id: str, password_hash: str) -> bool:
        return self._update(user_id, password_hash=password_hash)

    def set_credentials(self, user_id: str, password_hash: str, refresh_token: str) -> bool:
        """Write a new password hash and refresh token in one statement."""
        return self._update(user_id, password_hash=password_hash, refresh_token=refresh_token)

    def _update(self, user_id: str, *criteria, **values) -> bool:
        """
        Run one UPDATE for user_id and commit it. Returns False when no row
        matched. Constraint violations propagate as IntegrityError; any other
        database failure becomes StoreError.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self._session.execute(stmt)
            self._storage.save()
        except IntegrityError:
            self._storage.rollback()
            raise
        except SQLAlchemyError as exc:
            self._storage.rollback()
            logger.exception("Account update failed for user %s", user_id)
            raise StoreError(f"could not update account {user_id}") from exc
        return result.rowcount == 1
