# pkgregistry/domain/storage.py
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import Settings
from ..core.errors import NotFoundError, StoreError


# ---------------------------------------------------------
# Base class (must come first!)
# ---------------------------------------------------------
class BlobStore:
    def put(self, key: str, data: bytes, content_type: str = "application/zip") -> str:
        """Store bytes under key and return the key."""
        raise NotImplementedError

    def get(self, key: str) -> bytes:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


# ---------------------------------------------------------
# In-process implementation (tests, local dev)
# ---------------------------------------------------------
@dataclass
class InMemoryBlobStore(BlobStore):
    blobs: Dict[str, bytes] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: str = "application/zip") -> str:
        with self._lock:
            self.blobs[key] = bytes(data)
        return key

    def get(self, key: str) -> bytes:
        with self._lock:
            if key not in self.blobs:
                raise NotFoundError(f"blob {key} not found")
            return self.blobs[key]

    def delete(self, key: str) -> None:
        with self._lock:
            self.blobs.pop(key, None)


# ---------------------------------------------------------
# Local filesystem implementation
# ---------------------------------------------------------
@dataclass
class LocalBlobStore(BlobStore):
    root: str

    def _path(self, key: str) -> str:
        root = os.path.abspath(self.root)
        dst = os.path.abspath(os.path.join(root, key))
        if os.path.commonpath([root, dst]) != root:
            raise StoreError(f"blob key escapes store root: {key}")
        return dst

    def put(self, key: str, data: bytes, content_type: str = "application/zip") -> str:
        dst = self._path(key)
        try:
            os.makedirs(os.path.dirname(dst), exist_ok=True)
            with open(dst, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StoreError(f"failed to write blob {key}: {e}")
        return key

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not os.path.exists(path):
            raise NotFoundError(f"blob {key} not found")
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise StoreError(f"failed to read blob {key}: {e}")

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StoreError(f"failed to delete blob {key}: {e}")


# ---------------------------------------------------------
# AWS S3 implementation
# ---------------------------------------------------------
@dataclass
class S3BlobStore(BlobStore):
    bucket: str
    region: str | None = None
    client: Any = None

    def __post_init__(self):
        if self.client is None:
            self.client = boto3.client("s3", region_name=self.region)

    def put(self, key: str, data: bytes, content_type: str = "application/zip") -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"failed to upload {key}: {e}")
        return key

    def get(self, key: str) -> bytes:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
            return obj["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError(f"blob {key} not found")
            raise StoreError(f"failed to download {key}: {e}")
        except BotoCoreError as e:
            raise StoreError(f"failed to download {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"failed to delete {key}: {e}")


# ---------------------------------------------------------
# Factory
# ---------------------------------------------------------
def build_blob_store(s: Settings) -> BlobStore:
    """Return a blob store for the configured backend (memory, local or S3)."""
    if s.STORAGE_BACKEND == "memory":
        return InMemoryBlobStore()
    if s.STORAGE_BACKEND == "local":
        os.makedirs(s.BLOB_ROOT, exist_ok=True)
        return LocalBlobStore(s.BLOB_ROOT)
    if s.STORAGE_BACKEND == "s3":
        if not s.S3_BUCKET:
            raise RuntimeError("S3 backend selected but S3_BUCKET is not set")
        return S3BlobStore(bucket=s.S3_BUCKET, region=s.AWS_REGION)
    raise NotImplementedError(f"Unknown STORAGE_BACKEND={s.STORAGE_BACKEND}")
