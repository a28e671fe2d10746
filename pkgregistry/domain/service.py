# pkgregistry/domain/service.py
"""
Public entry points of the registry core.

Every operation returns an ``Outcome``: the component errors raised below
this layer are caught here and handed back as values, so callers (the HTTP
routes, the Lambda handler) never see an exception from the core.
"""
from __future__ import annotations

import base64
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from ..core.config import Settings
from ..core.errors import NotFoundError, RegistryError, StoreError
from ..core.result import Outcome
from ..integrations.github import ContentSourceAdapter
from .guard import ConsistencyGuard
from .ingest import IngestionPipeline
from .models import (IngestRequest, PackageContent, PackageQuery, PackageRecord,
                     PackageSummary, ResetReport)
from .query import QueryEngine
from .repos import MetadataStore, build_metadata_store
from .secret_store import SecretStore, build_secret_store
from .storage import BlobStore, build_blob_store

T = TypeVar("T")


class RegistryService:
    def __init__(self, metadata: MetadataStore, blobs: BlobStore,
                 adapter: ContentSourceAdapter, secrets: SecretStore,
                 settings: Settings | None = None):
        s = settings or Settings()
        self.metadata = metadata
        self.blobs = blobs
        self.guard = ConsistencyGuard(
            metadata,
            require_js_program_on_publish=s.REQUIRE_JSPROGRAM_ON_PUBLISH,
            require_js_program_on_update=s.REQUIRE_JSPROGRAM_ON_UPDATE,
        )
        self.pipeline = IngestionPipeline(metadata, blobs, adapter, secrets, self.guard,
                                          token_secret_name=s.GITHUB_TOKEN_SECRET_NAME)
        self.queries = QueryEngine(metadata, blobs, max_results=s.MAX_QUERY_RESULTS,
                                   max_regex_length=s.MAX_REGEX_LENGTH)
        self.reset_workers = max(1, s.RESET_WORKERS)

    @classmethod
    def from_settings(cls, s: Settings) -> "RegistryService":
        return cls(
            metadata=build_metadata_store(s),
            blobs=build_blob_store(s),
            adapter=ContentSourceAdapter.from_settings(s),
            secrets=build_secret_store(s),
            settings=s,
        )

    # ---------------------------------------------------------
    # Public API
    # ---------------------------------------------------------
    def ingest_package(self, req: IngestRequest) -> Outcome[PackageRecord]:
        return self._run("ingest", self.pipeline.ingest, req)

    def update_package(self, package_id: str, req: IngestRequest) -> Outcome[PackageRecord]:
        return self._run("update", self.pipeline.update, package_id, req)

    def resolve_queries(self, queries: Sequence[PackageQuery]) -> Outcome[List[PackageSummary]]:
        return self._run("resolve", self.queries.resolve, queries)

    def search_by_pattern(self, pattern: str) -> Outcome[List[PackageSummary]]:
        return self._run("search", self.queries.search_by_pattern, pattern)

    def get_package(self, package_id: str) -> Outcome[PackageContent]:
        return self._run("download", self._download, package_id)

    def reset_registry(self) -> Outcome[ResetReport]:
        return self._run("reset", self._reset)

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------
    def _run(self, op: str, fn: Callable[..., T], *args) -> Outcome[T]:
        try:
            return Outcome.success(fn(*args))
        except RegistryError as e:
            if e.status_code >= 500:
                logger.error("{} failed: {}", op, e)
            else:
                logger.info("{} rejected ({}): {}", op, e.status_code, e)
            return Outcome.failure(e)
        except Exception as e:
            logger.exception("{} failed unexpectedly", op)
            return Outcome.failure(StoreError(f"{op} failed: {e}"))

    def _download(self, package_id: str) -> PackageContent:
        rec = self.metadata.get(package_id)
        if rec is None:
            raise NotFoundError(f"Package {package_id} does not exist.")
        try:
            data = self.blobs.get(rec.content_ref)
        except NotFoundError:
            raise StoreError(f"Content for {package_id} is missing.")
        return PackageContent(record=rec, content=base64.b64encode(data).decode("ascii"))

    def _delete_one(self, rec: PackageRecord) -> Tuple[bool, Optional[Dict[str, str]]]:
        # metadata first: a failure here must not leave a record without its blob
        try:
            self.metadata.delete(rec.package_id)
        except Exception as e:
            logger.error("Failed to delete metadata {}: {}", rec.package_id, e)
            return False, {"package_id": rec.package_id, "stage": "metadata", "error": str(e)}
        try:
            self.blobs.delete(rec.content_ref)
        except Exception as e:
            logger.warning("Failed to delete blob {}: {}", rec.content_ref, e)
            return True, {"package_id": rec.package_id, "stage": "blob", "error": str(e)}
        return True, None

    def _reset(self) -> ResetReport:
        records = self.metadata.scan_all()
        logger.info("Reset: {} packages to delete", len(records))
        report = ResetReport()
        with ThreadPoolExecutor(max_workers=self.reset_workers) as executor:
            futures = [executor.submit(self._delete_one, rec) for rec in records]
            for future in futures:
                deleted, failure = future.result()
                report.deleted += int(deleted)
                if failure:
                    report.failures.append(failure)
        logger.info("Reset complete: {} deleted, {} failures", report.deleted, len(report.failures))
        return report
