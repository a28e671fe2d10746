# pkgregistry/domain/ingest.py
"""
Ingestion pipeline.

Validate -> ResolveVersion -> Acquire -> Transform (optional) -> PersistBlob
-> PersistMetadata. The first failing step aborts. The blob is written before
the metadata record, so an interrupted run leaves at most an orphan blob.
"""
import base64
import binascii
from dataclasses import replace
from typing import Tuple

from loguru import logger

from ..core.archive import debloat
from ..core.errors import ConditionFailed, ConflictError, NotFoundError, ValidationError
from ..core.versioning import SemVer, latest, next_version
from ..integrations.github import ContentSourceAdapter
from .guard import ConsistencyGuard, ContentMode, ValidationResult
from .models import (IngestMode, IngestRequest, PackageRecord, make_content_ref,
                     make_package_id)
from .repos import IF_NOT_EXISTS, MetadataStore
from .secret_store import SecretStore
from .storage import BlobStore


class IngestionPipeline:
    def __init__(self, metadata: MetadataStore, blobs: BlobStore,
                 adapter: ContentSourceAdapter, secrets: SecretStore,
                 guard: ConsistencyGuard, token_secret_name: str = "GITHUB_TOKEN"):
        self.metadata = metadata
        self.blobs = blobs
        self.adapter = adapter
        self.secrets = secrets
        self.guard = guard
        self.token_secret_name = token_secret_name

    def ingest(self, req: IngestRequest, mode: IngestMode = IngestMode.PUBLISH) -> PackageRecord:
        checked = self.guard.validate_ingestion(req, mode)
        version, package_id = self._resolve_version(checked, mode)
        logger.debug("{} {} resolved to {}", mode.value, checked.name, package_id)

        data = self._acquire(req, checked)
        if req.debloat:
            before = len(data)
            data = debloat(data)
            logger.info("Debloated {}: {} -> {} bytes", package_id, before, len(data))

        content_ref = make_content_ref(checked.name, version)
        self.blobs.put(content_ref, data, "application/zip")

        record = PackageRecord(
            package_id=package_id,
            name=checked.name,
            version=version,
            content_ref=content_ref,
            source_url=req.url if checked.content_mode is ContentMode.REMOTE else None,
            js_program=req.js_program,
            size_bytes=len(data),
            debloated=req.debloat,
        )
        try:
            self.metadata.put(record, condition=IF_NOT_EXISTS)
        except ConditionFailed:
            # lost a race with a concurrent publish of the same version
            raise ConflictError(f"Package {package_id} already exists.")
        logger.info("Stored package {} ({} bytes)", package_id, record.size_bytes)
        return record

    def update(self, package_id: str, req: IngestRequest) -> PackageRecord:
        """Publish the next version of an existing package."""
        self.guard.check_content_source(req)
        target = self.metadata.get(package_id)
        if target is None:
            raise NotFoundError(f"Package {package_id} does not exist.")
        name = (req.name or "").strip()
        if name and name != target.name:
            raise ValidationError(f"Name {name!r} does not match package {package_id}.")
        return self.ingest(replace(req, name=target.name), IngestMode.UPDATE)

    def _resolve_version(self, checked: ValidationResult, mode: IngestMode) -> Tuple[SemVer, str]:
        existing = [r.version for r in self.metadata.query(checked.name)]
        version = checked.version or next_version(latest(existing))
        package_id = make_package_id(checked.name, version)
        if mode is IngestMode.PUBLISH:
            self.guard.check_duplicate(package_id)
        else:
            self.guard.check_version_acceptance(version, existing)
        return version, package_id

    def _acquire(self, req: IngestRequest, checked: ValidationResult) -> bytes:
        if checked.content_mode is ContentMode.REMOTE:
            credential = self.secrets.get_secret(self.token_secret_name)
            return self.adapter.fetch(req.url, credential)
        try:
            # line-wrapped (MIME) base64 is accepted; other stray characters are not
            data = base64.b64decode("".join(req.content.split()), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Content is not valid base64.")
        if not data:
            raise ValidationError("Content is empty.")
        return data
