# pkgregistry/core/security.py
"""Credentials for the registry API: the admin login check and role-bearing JWTs."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Dict

import jwt  # PyJWT
from passlib.context import CryptContext

from .config import Settings, get_settings

# PBKDF2 has no 72-byte input limit, unlike bcrypt
_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_ALGORITHM = "HS256"


class Role(str, Enum):
    """Registry roles, lowest privilege first."""

    viewer = "viewer"            # list, search, download
    contributor = "contributor"  # + upload, update
    admin = "admin"              # + reset

    @property
    def rank(self) -> int:
        return list(Role).index(self)


def role_allows(granted: str, required: Role) -> bool:
    try:
        return Role(granted).rank >= required.rank
    except ValueError:
        return False


def hash_password(pw: str) -> str:
    return _pwd.hash(pw)


def verify_password(pw: str, hashed: str) -> bool:
    return _pwd.verify(pw, hashed)


@lru_cache(maxsize=4)
def _admin_hash(password: str) -> str:
    return hash_password(password)


def authenticate_admin(username: str, password: str, settings: Settings | None = None) -> bool:
    """Check a login against the configured admin account."""
    s = settings or get_settings()
    if username != s.ADMIN_USERNAME:
        return False
    return verify_password(password, _admin_hash(s.ADMIN_PASSWORD))


def create_jwt(sub: str, role: Role, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    issued = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": sub,
        "role": role.value,
        "iat": issued,
        "exp": issued + timedelta(hours=s.JWT_EXPIRE_HOURS),
        "iss": s.JWT_ISSUER,
        "aud": s.JWT_AUDIENCE,
    }
    return jwt.encode(claims, s.JWT_SECRET, algorithm=_ALGORITHM)


def decode_jwt(token: str, settings: Settings | None = None) -> Dict[str, Any]:
    """Verify signature, expiry, issuer and audience; raises jwt.PyJWTError."""
    s = settings or get_settings()
    return jwt.decode(token, s.JWT_SECRET, algorithms=[_ALGORITHM],
                      audience=s.JWT_AUDIENCE, issuer=s.JWT_ISSUER)
