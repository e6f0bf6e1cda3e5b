"""Storage buckets: policies, defaults and upload validation."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.attachment import StorageBucket
from ..storage.blobstore import BucketBlobStore, StorageError

log = logging.getLogger(__name__)

MB = 1024 * 1024

DEFAULT_BUCKETS: list[dict] = [
    {
        "name": "service-sheets",
        "public": True,
        "allowed_mime_types": ["application/pdf", "image/jpeg", "image/png", "image/webp"],
        "file_size_limit": 10 * MB,
    },
    {
        "name": "parts-diagrams",
        "public": True,
        "allowed_mime_types": ["image/jpeg", "image/png", "image/webp", "application/pdf"],
        "file_size_limit": 10 * MB,
    },
    {
        "name": "appliance-images",
        "public": True,
        "allowed_mime_types": ["image/jpeg", "image/png", "image/webp"],
        "file_size_limit": 5 * MB,
    },
]


def get_blobstore() -> BucketBlobStore:
    return BucketBlobStore(settings.storage_root, settings.storage_public_url)


def public_url(bucket: str, key: str) -> str:
    return get_blobstore().public_url(bucket, key)


async def get_bucket(db: AsyncSession, name: str) -> StorageBucket | None:
    stmt = select(StorageBucket).where(StorageBucket.name == name)
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_buckets(db: AsyncSession) -> list[StorageBucket]:
    stmt = select(StorageBucket).order_by(StorageBucket.name)
    return list((await db.execute(stmt)).scalars().all())


async def create_storage_buckets(db: AsyncSession, configs: list[dict] | None = None) -> dict:
    """Create any missing buckets. Returns {created, existing, errors} name lists."""
    store = get_blobstore()
    created: list[str] = []
    existing: list[str] = []
    errors: list[dict] = []

    for config in configs or DEFAULT_BUCKETS:
        name = config["name"]
        if await get_bucket(db, name) is not None:
            existing.append(name)
            continue
        try:
            store.ensure_bucket(name)
        except (StorageError, OSError) as exc:
            log.warning("Could not create bucket %s: %s", name, exc)
            errors.append({"bucket": name, "error": str(exc)})
            continue
        db.add(
            StorageBucket(
                name=name,
                public=config.get("public", True),
                allowed_mime_types=config.get("allowed_mime_types"),
                file_size_limit=config.get("file_size_limit"),
            )
        )
        created.append(name)

    await db.commit()
    return {"created": created, "existing": existing, "errors": errors}


async def check_upload(db: AsyncSession, bucket: str, mime_type: str | None, size: int) -> str | None:
    """Validate an upload against the bucket policy, if one is registered."""
    policy = await get_bucket(db, bucket)
    if policy is None:
        return None
    if policy.allowed_mime_types and mime_type not in policy.allowed_mime_types:
        return f"File type {mime_type or 'unknown'} is not allowed in bucket {bucket}"
    if policy.file_size_limit and size > policy.file_size_limit:
        return f"File exceeds the {policy.file_size_limit // MB} MB limit for bucket {bucket}"
    return None
