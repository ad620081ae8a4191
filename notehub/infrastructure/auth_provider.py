"""Identity Provider — signed bearer tokens and password hashing.

Invariants:
    - issue() encodes {sub, username, role, iat, exp}; verify() returns an Identity or raises AuthError
    - sub is the user id as a string (PyJWT rejects non-string subjects)
    - Passwords are never stored or logged in clear text

Design Decisions:
    - HS256 JWT via PyJWT: server-verifiable capability token, no session table
    - bcrypt with a per-hash salt and a configurable cost (settings.password_hash_rounds)
    - Malformed stored hashes verify as False, never raise
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
import jwt

from notehub.config import get_settings
from notehub.core.domain_types import Identity, UserId, UserRole
from notehub.core.errors import AuthError

logger = logging.getLogger(__name__)

_BCRYPT_MAX_BYTES = 72


class JWTTokenProvider:
    """Issues and validates bearer tokens carrying {id, username, role}."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_days: int = 7):
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(days=ttl_days)

    def issue(self, identity: Identity) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(identity.id),
            "username": identity.username,
            "role": identity.role.value,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(
                token, self._secret, algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected bearer token: {e}")
            raise AuthError("Invalid token")

        try:
            return Identity(
                id=UserId(int(payload["sub"])),
                username=str(payload.get("username", "")),
                role=UserRole(payload.get("role")),
            )
        except (ValueError, TypeError):
            raise AuthError("Invalid token claims")


@lru_cache
def get_token_provider() -> JWTTokenProvider:
    settings = get_settings()
    return JWTTokenProvider(
        settings.jwt_secret, settings.jwt_algorithm, settings.token_ttl_days,
    )


def _secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode()[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password as a bcrypt string ($2b$<cost>$<salt+digest>)."""
    cost = rounds or get_settings().password_hash_rounds
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=cost)).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_secret(password), hashed.encode())
    except ValueError:
        return False
