"""Filesystem bucket store for uploaded files.

Layout:
  <storage_dir>/<bucket>/<key>

Keys are relative POSIX paths such as `service/<uuid>/<ms>-<rand>.pdf`.
Public URLs are `<storage_public_url>/<bucket>/<key>`.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path, PurePosixPath

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9._-]{0,62}$")


class StorageError(Exception):
    pass


def _normalize_bucket(bucket: str) -> str:
    name = (bucket or "").strip()
    if not _BUCKET_RE.match(name):
        raise StorageError(f"Invalid bucket name: {bucket!r}")
    return name


def _normalize_key(key: str) -> PurePosixPath:
    path = PurePosixPath((key or "").strip())
    if not path.parts or path.is_absolute() or ".." in path.parts:
        raise StorageError(f"Invalid object key: {key!r}")
    return path


class BucketBlobStore:
    """Synchronous bucket store with atomic writes."""

    def __init__(self, root_dir: str | Path, public_base_url: str = ""):
        self.root_dir = Path(root_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def path_for(self, bucket: str, key: str) -> Path:
        return self.root_dir / _normalize_bucket(bucket) / Path(*_normalize_key(key).parts)

    def ensure_bucket(self, bucket: str) -> Path:
        path = self.root_dir / _normalize_bucket(bucket)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def bucket_exists(self, bucket: str) -> bool:
        return (self.root_dir / _normalize_bucket(bucket)).is_dir()

    def list_buckets(self) -> list[str]:
        if not self.root_dir.is_dir():
            return []
        return sorted(p.name for p in self.root_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    def exists(self, bucket: str, key: str) -> bool:
        return self.path_for(bucket, key).is_file()

    def put_bytes(self, bucket: str, key: str, data: bytes, *, upsert: bool = False) -> Path:
        """Write bytes under bucket/key using an atomic rename."""
        dest = self.path_for(bucket, key)
        if dest.exists() and not upsert:
            raise StorageError(f"Object already exists: {bucket}/{key}")
        dest.parent.mkdir(parents=True, exist_ok=True)

        fd = None
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{dest.name}.tmp.", dir=str(dest.parent))
            with os.fdopen(fd, "wb") as f:
                fd = None
                f.write(data or b"")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, dest)
            tmp_path = None
        finally:
            if fd is not None:
                os.close(fd)
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)

        return dest

    def read_bytes(self, bucket: str, key: str) -> bytes:
        path = self.path_for(bucket, key)
        if not path.is_file():
            raise StorageError(f"Object not found: {bucket}/{key}")
        return path.read_bytes()

    def remove(self, bucket: str, keys: list[str]) -> list[str]:
        """Delete objects; missing keys are skipped. Returns removed keys."""
        removed: list[str] = []
        for key in keys:
            path = self.path_for(bucket, key)
            if path.is_file():
                path.unlink()
                removed.append(key)
        return removed

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{_normalize_bucket(bucket)}/{_normalize_key(key).as_posix()}"
