"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT, one secret and one lifetime per token kind
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

ACCESS = "access"
REFRESH = "refresh"

ph = PasswordHasher()


class TokenError(Exception):
    """Base class for tokens that fail verification."""


class TokenInvalidError(TokenError):
    pass


class TokenExpiredError(TokenError):
    pass


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    return ph.check_needs_rehash(password_hash)


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenConfig:
    """
    Signing material for both token kinds.
    Built once when the app starts and passed to whoever issues or verifies tokens.
    """
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"
    issuer: str = "accounts-api"

    def __post_init__(self):
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be set")
        if self.access_secret == self.refresh_secret:
            raise ValueError("access and refresh tokens must use different secrets")
        if self.access_ttl <= timedelta(0) or self.refresh_ttl <= timedelta(0):
            raise ValueError("token lifetimes must be positive")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "TokenConfig":
        return cls(
            access_secret=config.get("ACCESS_TOKEN_SECRET") or "",
            refresh_secret=config.get("REFRESH_TOKEN_SECRET") or "",
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "accounts-api"),
        )

    def secret_for(self, kind: str) -> str:
        if kind == ACCESS:
            return self.access_secret
        if kind == REFRESH:
            return self.refresh_secret
        raise ValueError(f"Unknown token kind: {kind}")

    def ttl_for(self, kind: str) -> timedelta:
        return self.access_ttl if kind == ACCESS else self.refresh_ttl


def issue_token(config: TokenConfig, subject: str, kind: str,
                extra_claims: Dict[str, Any] | None = None) -> str:
    """
    Sign a token of the given kind for subject.
    The payload embeds the subject, the kind, and an expiry taken from the kind's lifetime.
    """
    secret = config.secret_for(kind)
    now = _now()
    payload = dict(extra_claims or {})
    payload.update({
        "iss": config.issuer,
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int((now + config.ttl_for(kind)).timestamp()),
        "type": kind,
        "jti": generate_jti(),
    })
    return jwt.encode(payload, secret, algorithm=config.algorithm)


def decode_token(config: TokenConfig, token: str, kind: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenExpiredError or TokenInvalidError
    on an expired token, a bad signature, or a token of another kind.
    """
    if not token or not isinstance(token, str):
        raise TokenInvalidError("Token missing")
    try:
        decoded = jwt.decode(
            token,
            config.secret_for(kind),
            algorithms=[config.algorithm],
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise TokenInvalidError(f"Invalid token: {exc}")

    if decoded.get("type") != kind:
        raise TokenInvalidError("Wrong token type")
    return decoded


def verify_token(config: TokenConfig, token: str, kind: str) -> str:
    """Return the principal id carried by a valid token of the given kind."""
    return decode_token(config, token, kind)["sub"]
