# pkgregistry/domain/query.py
from collections import OrderedDict
from typing import List, Optional, Pattern, Sequence

from loguru import logger

from ..core.archive import extract_readme
from ..core.errors import NotFoundError, RegistryError, ResultTooLargeError, ValidationError
from ..core.search import safe_regex
from ..core.versioning import VersionRange, parse_range
from .models import PackageQuery, PackageRecord, PackageSummary
from .repos import MetadataStore
from .storage import BlobStore

WILDCARD = "*"


class QueryEngine:
    def __init__(self, metadata: MetadataStore, blobs: BlobStore,
                 max_results: int = 100, max_regex_length: int = 100):
        self.metadata = metadata
        self.blobs = blobs
        self.max_results = max_results
        self.max_regex_length = max_regex_length

    def resolve(self, queries: Sequence[PackageQuery]) -> List[PackageSummary]:
        """
        Resolve a batch of (name, optional range) queries.

        Matches are concatenated in query order and deduplicated by package id,
        keeping the first occurrence. Exceeding ``max_results`` distinct
        packages fails the whole batch.
        """
        # parse every range before touching the store
        ranges: List[Optional[VersionRange]] = []
        for q in queries:
            if not (q.name or "").strip():
                raise ValidationError("Each query must have a 'Name' field.")
            ranges.append(parse_range(q.version) if q.version and q.name.strip() != WILDCARD else None)

        results: "OrderedDict[str, PackageSummary]" = OrderedDict()
        for q, rng in zip(queries, ranges):
            for rec in self._match(q.name.strip(), rng):
                if rec.package_id in results:
                    continue
                results[rec.package_id] = rec.summary()
                if len(results) > self.max_results:
                    raise ResultTooLargeError(
                        f"Too many packages returned (limit {self.max_results}). Refine your query."
                    )
        return list(results.values())

    def _match(self, name: str, rng: Optional[VersionRange]) -> List[PackageRecord]:
        if name == WILDCARD:
            return sorted(self.metadata.scan_all(), key=lambda r: (r.name, r.version))
        if rng is None:
            return self.metadata.query(name)
        return self.metadata.query(name, filter=lambda r: rng.contains(r.version))

    def search_by_pattern(self, pattern: str) -> List[PackageSummary]:
        """Case-insensitive regex over package names, falling back to README text."""
        regex = safe_regex(pattern, max_len=self.max_regex_length)
        matched: List[PackageSummary] = []
        for rec in self.metadata.scan_all():
            if regex.search(rec.name) or self._readme_matches(rec, regex):
                matched.append(rec.summary())
                if len(matched) > self.max_results:
                    raise ResultTooLargeError(
                        f"Too many packages returned (limit {self.max_results}). Refine your query."
                    )
        if not matched:
            raise NotFoundError("No packages matched the given regular expression.")
        return matched

    def _readme_matches(self, rec: PackageRecord, regex: Pattern) -> bool:
        try:
            data = self.blobs.get(rec.content_ref)
        except RegistryError as e:
            logger.warning("Skipping README search for {}: {}", rec.package_id, e)
            return False
        readme = extract_readme(data)
        return bool(readme and regex.search(readme))

