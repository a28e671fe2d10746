# pkgregistry/deps.py
from __future__ import annotations
from typing import Any, Dict, TypeVar

import jwt
from fastapi import Depends, HTTPException, Header

from .core.config import get_settings
from .core.errors import RegistryError
from .core.result import Outcome
from .core.security import Role, decode_jwt, role_allows
from .domain.service import RegistryService

T = TypeVar("T")

_registry: RegistryService | None = None

def get_registry() -> RegistryService:
    global _registry
    if _registry is None:
        _registry = RegistryService.from_settings(get_settings())
    return _registry

def unwrap(outcome: Outcome[T]) -> T:
    """Map a failed core outcome onto the matching HTTP status."""
    try:
        return outcome.unwrap()
    except RegistryError as err:
        raise HTTPException(status_code=err.status_code, detail=err.message)

def auth_header(authorization: str | None = Header(default=None),
                x_authorization: str | None = Header(default=None, alias="X-Authorization")) -> str:
    value = authorization or x_authorization
    if not value or not value.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return value.split(" ", 1)[1]

def require_role(role: Role):
    def dep(token: str = Depends(auth_header)) -> Dict[str, Any]:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            raise HTTPException(status_code=401, detail="Invalid token")
        if not role_allows(payload.get("role", ""), role):
            raise HTTPException(status_code=403, detail=f"{role.value.capitalize()} required")
        return payload
    return dep

require_viewer = require_role(Role.viewer)
require_contributor = require_role(Role.contributor)
require_admin = require_role(Role.admin)
