"""
Shared fixtures: in-memory stores, a scripted content adapter and zip helpers.
"""

import base64
import io
import zipfile
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from pkgregistry import deps
from pkgregistry.core.config import Settings
from pkgregistry.core.security import Role, create_jwt
from pkgregistry.core.versioning import SemVer
from pkgregistry.domain.models import PackageRecord, make_content_ref, make_package_id
from pkgregistry.domain.repos import InMemoryMetadataStore
from pkgregistry.domain.secret_store import SettingsSecretStore
from pkgregistry.domain.service import RegistryService
from pkgregistry.domain.storage import InMemoryBlobStore
from pkgregistry.main import create_app


def build_zip(entries: Dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


class FakeAdapter:
    """Stands in for ContentSourceAdapter; records every fetch."""

    def __init__(self, payload: bytes = b"", error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.calls: List[Tuple[str, Optional[str]]] = []

    def fetch(self, locator: str, credential: Optional[str] = None) -> bytes:
        self.calls.append((locator, credential))
        if self.error:
            raise self.error
        return self.payload


@pytest.fixture
def zip_bytes():
    return build_zip


@pytest.fixture
def b64_zip():
    def make(entries: Dict[str, bytes]) -> str:
        return base64.b64encode(build_zip(entries)).decode("ascii")
    return make


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, RESET_WORKERS=2, GITHUB_TOKEN="gh-test-token")


@pytest.fixture
def metadata() -> InMemoryMetadataStore:
    # small pages so every scan exercises continuation tokens
    return InMemoryMetadataStore(page_size=3)


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter(payload=build_zip({"pkg/index.js": b"module.exports = 1;\n"}))


@pytest.fixture
def secrets(settings) -> SettingsSecretStore:
    return SettingsSecretStore({settings.GITHUB_TOKEN_SECRET_NAME: settings.GITHUB_TOKEN})


@pytest.fixture
def service(metadata, blobs, adapter, secrets, settings) -> RegistryService:
    return RegistryService(metadata, blobs, adapter, secrets, settings=settings)


@pytest.fixture
def seed(metadata, blobs):
    """Insert stored packages directly: seed("X", "1.2.3", zip_entries=None)."""
    def add(name: str, version: str, zip_entries: Optional[Dict[str, bytes]] = None) -> PackageRecord:
        major, minor, patch = (int(p) for p in version.split("."))
        v = SemVer(major, minor, patch)
        rec = PackageRecord(
            package_id=make_package_id(name, v),
            name=name,
            version=v,
            content_ref=make_content_ref(name, v),
        )
        blobs.put(rec.content_ref, build_zip(zip_entries or {"index.js": b"1;"}))
        metadata.put(rec)
        return rec
    return add



@pytest.fixture
def client(service):
    app = create_app()
    app.dependency_overrides[deps.get_registry] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Authorization headers for a role: auth(Role.admin)."""
    def headers(role: Role = Role.admin):
        return {"X-Authorization": f"bearer {create_jwt('tester', role)}"}
    return headers
