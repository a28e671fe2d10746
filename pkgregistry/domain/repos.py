# pkgregistry/domain/repos.py
import threading
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .db_models import PackageModel
from .models import PackageRecord
from ..core.config import Settings
from ..core.database import init_db, make_engine, make_session_factory, session_scope
from ..core.errors import ConditionFailed, StoreError

IF_NOT_EXISTS = "attribute_not_exists(package_id)"

RecordFilter = Callable[[PackageRecord], bool]


class MetadataStore:
    """Package metadata keyed by package_id and partitioned by name."""

    def get(self, package_id: str) -> Optional[PackageRecord]:
        raise NotImplementedError

    def put(self, record: PackageRecord, condition: Optional[str] = None) -> None:
        """Write a record; with IF_NOT_EXISTS an existing key raises ConditionFailed."""
        raise NotImplementedError

    def query(self, name: str, filter: Optional[RecordFilter] = None) -> List[PackageRecord]:
        """All records for ``name`` in ascending version order."""
        raise NotImplementedError

    def scan(self, filter: Optional[RecordFilter] = None,
             continuation_token: Optional[str] = None) -> Tuple[List[PackageRecord], Optional[str]]:
        """One page of records ordered by package_id, plus the token for the next page."""
        raise NotImplementedError

    def delete(self, package_id: str) -> None:
        raise NotImplementedError

    def scan_all(self, filter: Optional[RecordFilter] = None) -> List[PackageRecord]:
        items: List[PackageRecord] = []
        token: Optional[str] = None
        while True:
            page, token = self.scan(filter, token)
            items.extend(page)
            if token is None:
                return items


def _check_condition(condition: Optional[str]) -> None:
    if condition not in (None, IF_NOT_EXISTS):
        raise ValueError(f"unsupported write condition: {condition}")


class InMemoryMetadataStore(MetadataStore):
    def __init__(self, page_size: int = 100):
        self.page_size = page_size
        self._db: Dict[str, PackageRecord] = {}
        self._lock = threading.Lock()

    def get(self, package_id: str) -> Optional[PackageRecord]:
        return self._db.get(package_id)

    def put(self, record: PackageRecord, condition: Optional[str] = None) -> None:
        _check_condition(condition)
        with self._lock:
            if condition == IF_NOT_EXISTS and record.package_id in self._db:
                raise ConditionFailed(f"{record.package_id} already exists")
            self._db[record.package_id] = record

    def query(self, name: str, filter: Optional[RecordFilter] = None) -> List[PackageRecord]:
        with self._lock:
            items = [r for r in self._db.values() if r.name == name]
        if filter:
            items = [r for r in items if filter(r)]
        return sorted(items, key=lambda r: r.version)

    def scan(self, filter: Optional[RecordFilter] = None,
             continuation_token: Optional[str] = None) -> Tuple[List[PackageRecord], Optional[str]]:
        with self._lock:
            keys = sorted(k for k in self._db if continuation_token is None or k > continuation_token)
            page_keys = keys[:self.page_size]
            page = [self._db[k] for k in page_keys]
        next_token = page_keys[-1] if len(keys) > self.page_size else None
        if filter:
            page = [r for r in page if filter(r)]
        return page, next_token

    def delete(self, package_id: str) -> None:
        with self._lock:
            self._db.pop(package_id, None)


class SqlMetadataStore(MetadataStore):
    def __init__(self, session_factory: sessionmaker, page_size: int = 100):
        self._factory = session_factory
        self.page_size = page_size

    def get(self, package_id: str) -> Optional[PackageRecord]:
        try:
            with session_scope(self._factory) as s:
                row = s.get(PackageModel, package_id)
                return row.to_domain() if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"metadata read failed: {e}")

    def put(self, record: PackageRecord, condition: Optional[str] = None) -> None:
        _check_condition(condition)
        try:
            with session_scope(self._factory) as s:
                if condition == IF_NOT_EXISTS:
                    s.add(PackageModel.from_domain(record))
                else:
                    s.merge(PackageModel.from_domain(record))
        except IntegrityError:
            raise ConditionFailed(f"{record.package_id} already exists")
        except SQLAlchemyError as e:
            raise StoreError(f"metadata write failed: {e}")

    def query(self, name: str, filter: Optional[RecordFilter] = None) -> List[PackageRecord]:
        stmt = (
            select(PackageModel)
            .where(PackageModel.name == name)
            .order_by(PackageModel.major, PackageModel.minor, PackageModel.patch)
        )
        try:
            with session_scope(self._factory) as s:
                items = [row.to_domain() for row in s.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"metadata query failed: {e}")
        return [r for r in items if filter(r)] if filter else items

    def scan(self, filter: Optional[RecordFilter] = None,
             continuation_token: Optional[str] = None) -> Tuple[List[PackageRecord], Optional[str]]:
        stmt = select(PackageModel).order_by(PackageModel.package_id).limit(self.page_size + 1)
        if continuation_token is not None:
            stmt = stmt.where(PackageModel.package_id > continuation_token)
        try:
            with session_scope(self._factory) as s:
                rows = [row.to_domain() for row in s.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"metadata scan failed: {e}")
        page = rows[:self.page_size]
        next_token = page[-1].package_id if len(rows) > self.page_size else None
        if filter:
            page = [r for r in page if filter(r)]
        return page, next_token

    def delete(self, package_id: str) -> None:
        try:
            with session_scope(self._factory) as s:
                row = s.get(PackageModel, package_id)
                if row is not None:
                    s.delete(row)
        except SQLAlchemyError as e:
            raise StoreError(f"metadata delete failed: {e}")


def build_metadata_store(s: Settings) -> MetadataStore:
    if s.METADATA_BACKEND == "memory":
        return InMemoryMetadataStore(page_size=s.SCAN_PAGE_SIZE)
    if s.METADATA_BACKEND == "sql":
        engine = make_engine(s.DB_URL)
        init_db(engine)
        return SqlMetadataStore(make_session_factory(engine), page_size=s.SCAN_PAGE_SIZE)
    raise NotImplementedError(f"Unknown METADATA_BACKEND={s.METADATA_BACKEND}")
