# pkgregistry/domain/models.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from ..core.versioning import SemVer


def make_package_id(name: str, version: SemVer) -> str:
    return f"{name}_{version}"


def make_content_ref(name: str, version: SemVer) -> str:
    return f"{name}/{version}.zip"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class PackageSummary:
    name: str
    version: str
    id: str


@dataclass(frozen=True)
class PackageRecord:
    package_id: str
    name: str
    version: SemVer
    content_ref: str
    source_url: Optional[str] = None
    js_program: Optional[str] = None
    size_bytes: int = 0
    debloated: bool = False
    created_at: str = field(default_factory=_utcnow)

    def summary(self) -> PackageSummary:
        return PackageSummary(name=self.name, version=str(self.version), id=self.package_id)


class IngestMode(str, Enum):
    PUBLISH = "publish"
    UPDATE = "update"


@dataclass
class IngestRequest:
    """Caller input for publish/update; ``content`` is base64 text."""
    name: str
    version: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    js_program: Optional[str] = None
    debloat: bool = False


@dataclass(frozen=True)
class PackageQuery:
    name: str
    version: Optional[str] = None


@dataclass(frozen=True)
class PackageContent:
    record: PackageRecord
    content: str  # base64


@dataclass
class ResetReport:
    deleted: int = 0
    failures: List[Dict[str, str]] = field(default_factory=list)
