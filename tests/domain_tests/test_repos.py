import pytest

from pkgregistry.core.database import init_db, make_engine, make_session_factory
from pkgregistry.core.errors import ConditionFailed
from pkgregistry.core.versioning import SemVer
from pkgregistry.domain.models import PackageRecord, make_content_ref, make_package_id
from pkgregistry.domain.repos import IF_NOT_EXISTS, InMemoryMetadataStore, SqlMetadataStore


def record(name, version, **kw):
    v = SemVer(*version)
    return PackageRecord(package_id=make_package_id(name, v), name=name, version=v,
                         content_ref=make_content_ref(name, v), **kw)


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'db' / 'registry.db'}")
    init_db(engine)
    return SqlMetadataStore(make_session_factory(engine), page_size=2)


@pytest.fixture(params=["memory", "sql"])
def store(request, sql_store):
    if request.param == "memory":
        return InMemoryMetadataStore(page_size=2)
    return sql_store


class TestMetadataStore:
    def test_put_get_roundtrip(self, store):
        rec = record("X", (1, 2, 3), source_url="https://github.com/o/x", js_program="p",
                     size_bytes=10, debloated=True)
        store.put(rec)
        assert store.get("X_1.2.3") == rec
        assert store.get("X_9.9.9") is None

    def test_conditional_put(self, store):
        store.put(record("X", (1, 0, 0)), condition=IF_NOT_EXISTS)
        with pytest.raises(ConditionFailed):
            store.put(record("X", (1, 0, 0)), condition=IF_NOT_EXISTS)

    def test_unconditional_put_overwrites(self, store):
        store.put(record("X", (1, 0, 0)))
        store.put(record("X", (1, 0, 0), size_bytes=5))
        assert store.get("X_1.0.0").size_bytes == 5

    def test_query_numeric_order(self, store):
        for v in [(1, 10, 0), (1, 2, 0), (1, 9, 1), (0, 1, 0)]:
            store.put(record("X", v))
        store.put(record("Y", (1, 0, 0)))
        assert [str(r.version) for r in store.query("X")] == ["0.1.0", "1.2.0", "1.9.1", "1.10.0"]

    def test_query_filter(self, store):
        for v in [(1, 0, 0), (2, 0, 0)]:
            store.put(record("X", v))
        assert [r.package_id for r in store.query("X", filter=lambda r: r.version.major == 2)] == ["X_2.0.0"]

    def test_scan_pages(self, store):
        for n in "abcde":
            store.put(record(n, (1, 0, 0)))
        page, token = store.scan()
        assert [r.name for r in page] == ["a", "b"]
        assert token == "b_1.0.0"
        page, token = store.scan(continuation_token=token)
        assert [r.name for r in page] == ["c", "d"]
        page, token = store.scan(continuation_token=token)
        assert [r.name for r in page] == ["e"]
        assert token is None

    def test_scan_all_with_filter(self, store):
        for n in "abcde":
            store.put(record(n, (1, 0, 0)))
        assert [r.name for r in store.scan_all(filter=lambda r: r.name in "ae")] == ["a", "e"]

    def test_delete(self, store):
        store.put(record("X", (1, 0, 0)))
        store.delete("X_1.0.0")
        store.delete("X_1.0.0")
        assert store.get("X_1.0.0") is None

    def test_unknown_condition(self, store):
        with pytest.raises(ValueError):
            store.put(record("X", (1, 0, 0)), condition="attribute_exists(package_id)")
