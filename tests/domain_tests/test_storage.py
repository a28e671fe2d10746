import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from pkgregistry.core.config import Settings
from pkgregistry.core.errors import NotFoundError, StoreError
from pkgregistry.domain.storage import (
    InMemoryBlobStore,
    LocalBlobStore,
    S3BlobStore,
    build_blob_store,
)


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "op")


class TestLocalBlobStore:
    def test_put_get_delete(self, tmp_path):
        store = LocalBlobStore(str(tmp_path))
        assert store.put("left-pad/1.0.0.zip", b"zip") == "left-pad/1.0.0.zip"
        assert (tmp_path / "left-pad" / "1.0.0.zip").read_bytes() == b"zip"
        assert store.get("left-pad/1.0.0.zip") == b"zip"
        store.delete("left-pad/1.0.0.zip")
        with pytest.raises(NotFoundError):
            store.get("left-pad/1.0.0.zip")

    def test_delete_missing_is_noop(self, tmp_path):
        LocalBlobStore(str(tmp_path)).delete("nothing.zip")

    def test_rejects_escaping_keys(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "root"))
        with pytest.raises(StoreError):
            store.put("../outside.zip", b"x")


class TestS3BlobStore:
    def test_put_and_get(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"zip")}
        store = S3BlobStore(bucket="pkgs", client=client)
        store.put("X/1.0.0.zip", b"zip")
        client.put_object.assert_called_once_with(
            Bucket="pkgs", Key="X/1.0.0.zip", Body=b"zip", ContentType="application/zip"
        )
        assert store.get("X/1.0.0.zip") == b"zip"

    @pytest.mark.parametrize("code", ["NoSuchKey", "404"])
    def test_missing_key(self, code):
        client = MagicMock()
        client.get_object.side_effect = client_error(code)
        with pytest.raises(NotFoundError):
            S3BlobStore(bucket="pkgs", client=client).get("X/1.0.0.zip")

    def test_other_errors_are_store_errors(self):
        client = MagicMock()
        client.get_object.side_effect = client_error("AccessDenied")
        client.put_object.side_effect = client_error("AccessDenied")
        client.delete_object.side_effect = client_error("AccessDenied")
        store = S3BlobStore(bucket="pkgs", client=client)
        for call in (lambda: store.get("k"), lambda: store.put("k", b""), lambda: store.delete("k")):
            with pytest.raises(StoreError):
                call()


class TestFactory:
    def test_memory(self):
        assert isinstance(build_blob_store(Settings(_env_file=None, STORAGE_BACKEND="memory")),
                          InMemoryBlobStore)

    def test_local(self, tmp_path):
        s = Settings(_env_file=None, STORAGE_BACKEND="local", BLOB_ROOT=str(tmp_path / "blobs"))
        assert isinstance(build_blob_store(s), LocalBlobStore)
        assert (tmp_path / "blobs").is_dir()

    def test_s3_requires_bucket(self):
        with pytest.raises(RuntimeError):
            build_blob_store(Settings(_env_file=None, STORAGE_BACKEND="s3", S3_BUCKET=""))
