# pkgregistry/core/errors.py
from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base class for every failure the registry core reports to callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RegistryError):
    status_code = 400


class VersionConflictError(RegistryError):
    status_code = 400


class NotFoundError(RegistryError):
    status_code = 404


class ConflictError(RegistryError):
    status_code = 409


class ResultTooLargeError(RegistryError):
    status_code = 413


class UpstreamFetchError(RegistryError):
    status_code = 502

    def __init__(self, upstream_status: Optional[int], message: str):
        super().__init__(message)
        self.upstream_status = upstream_status


class NetworkError(RegistryError):
    status_code = 502


class StoreError(RegistryError):
    status_code = 500


class ConditionFailed(StoreError):
    """Raised by a store when a conditional write finds the key already present."""
