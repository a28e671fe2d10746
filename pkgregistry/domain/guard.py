# pkgregistry/domain/guard.py
"""
Write-side invariants: exclusive-or of URL vs. inline content, duplicate
(name, version) rejection, and the version acceptance rule for updates.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..core.errors import ConflictError, ValidationError, VersionConflictError
from ..core.versioning import SemVer, parse_version
from .models import IngestMode, IngestRequest
from .repos import MetadataStore


class ContentMode(str, Enum):
    REMOTE = "remote"
    INLINE = "inline"


@dataclass(frozen=True)
class ValidationResult:
    name: str
    version: Optional[SemVer]
    content_mode: ContentMode


class ConsistencyGuard:
    def __init__(self, store: MetadataStore, require_js_program_on_publish: bool = False,
                 require_js_program_on_update: bool = False):
        self.store = store
        self._require_js = {
            IngestMode.PUBLISH: require_js_program_on_publish,
            IngestMode.UPDATE: require_js_program_on_update,
        }

    def validate_ingestion(self, req: IngestRequest,
                           mode: IngestMode = IngestMode.PUBLISH) -> ValidationResult:
        """Static checks on the request; touches neither the network nor the stores."""
        content_mode = self.check_content_source(req)

        name = (req.name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        if name == "*" or name.startswith("/") or ".." in name.split("/"):
            raise ValidationError(f"invalid package name: {req.name!r}")

        if self._require_js[mode] and not (req.js_program or "").strip():
            raise ValidationError("JSProgram is required.")

        version = parse_version(req.version) if req.version else None
        return ValidationResult(
            name=name,
            version=version,
            content_mode=content_mode,
        )

    @staticmethod
    def check_content_source(req: IngestRequest) -> ContentMode:
        has_url, has_content = bool(req.url), bool(req.content)
        if has_url == has_content:
            raise ValidationError("Provide either Content or URL, but not both.")
        return ContentMode.REMOTE if has_url else ContentMode.INLINE

    def check_duplicate(self, package_id: str) -> None:
        if self.store.get(package_id) is not None:
            raise ConflictError(f"Package {package_id} already exists.")

    @staticmethod
    def check_version_acceptance(target: SemVer, existing: Iterable[SemVer]) -> None:
        # only the (major, minor) family of the target constrains the patch
        family = [v.patch for v in existing if (v.major, v.minor) == (target.major, target.minor)]
        if family and target.patch <= max(family):
            raise VersionConflictError(
                f"Version {target} must exceed {target.major}.{target.minor}.{max(family)}."
            )
