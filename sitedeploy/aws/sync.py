"""Mirror a local directory into an S3 prefix and delete prefixes recursively.

Uploads are diff based: a file is uploaded only when its key is missing remotely
or its content differs. Content is compared on the MD5 ETag for objects stored
in a single part and on size for multipart objects, whose ETag is not a plain
MD5 digest.
"""

import hashlib
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from boto3.exceptions import S3UploadFailedError

from sitedeploy.aws.errors import provider_errors
from sitedeploy.exceptions import NotFoundError, ProviderError

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000  # delete_objects limit
_HASH_CHUNK_SIZE = 1024 * 1024


@dataclass
class SyncResult:
    uploaded: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


def object_key(prefix: str, relative_path: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{relative_path}" if prefix else relative_path


def _md5_hex(path: Path) -> str:
    digest = hashlib.md5(usedforsecurity=False)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _is_unchanged(path: Path, remote: dict) -> bool:
    etag = remote.get("ETag", "").strip('"')
    if "-" in etag:
        return remote.get("Size") == path.stat().st_size
    return etag == _md5_hex(path)


def list_remote_objects(s3, bucket: str, prefix: str) -> dict[str, dict]:
    """Return ``{key: object summary}`` for every object below ``prefix``."""
    prefix = prefix.strip("/")
    objects: dict[str, dict] = {}
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=f"{prefix}/" if prefix else ""):
        for obj in page.get("Contents", []):
            objects[obj["Key"]] = obj
    return objects


def _local_files(local_dir: Path) -> dict[str, Path]:
    return {
        path.relative_to(local_dir).as_posix(): path
        for path in sorted(local_dir.rglob("*"))
        if path.is_file()
    }


def upload_directory(
    s3, bucket: str, local_dir: Path, prefix: str, *, delete_removed: bool = True
) -> SyncResult:
    """Upload ``local_dir`` below ``prefix``; delete remote keys missing locally."""
    if not local_dir.is_dir():
        raise NotFoundError(f"Local directory not found: {local_dir}")

    result = SyncResult()
    operation = f"s3:Sync {local_dir} -> s3://{bucket}/{prefix}"
    try:
        with provider_errors(operation):
            remote = list_remote_objects(s3, bucket, prefix)
            local = _local_files(local_dir)

            for relative_path, path in local.items():
                key = object_key(prefix, relative_path)
                if key in remote and _is_unchanged(path, remote[key]):
                    result.unchanged.append(key)
                    continue
                extra_args = {}
                content_type, _ = mimetypes.guess_type(path.name)
                if content_type:
                    extra_args["ContentType"] = content_type
                s3.upload_file(str(path), bucket, key, ExtraArgs=extra_args or None)
                logger.debug("Uploaded %s -> s3://%s/%s", path, bucket, key)
                result.uploaded.append(key)

            if delete_removed:
                local_keys = {object_key(prefix, relative_path) for relative_path in local}
                stale = [key for key in remote if key not in local_keys]
                result.deleted = delete_keys(s3, bucket, stale)
    # upload_file reports transfer failures outside ClientError
    except (S3UploadFailedError, OSError) as e:
        raise ProviderError(f"[{operation}] {e}", cause=e) from e

    logger.info(
        "Synced %s to s3://%s/%s: %d uploaded, %d unchanged, %d deleted",
        local_dir,
        bucket,
        prefix,
        len(result.uploaded),
        len(result.unchanged),
        len(result.deleted),
    )
    return result


def delete_keys(s3, bucket: str, keys: list[str]) -> list[str]:
    deleted: list[str] = []
    for start in range(0, len(keys), DELETE_BATCH_SIZE):
        batch = keys[start : start + DELETE_BATCH_SIZE]
        response = s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
        )
        errors = response.get("Errors", [])
        if errors:
            failed = ", ".join(f"{e.get('Key')} ({e.get('Code')})" for e in errors)
            raise ProviderError(f"Could not delete objects from {bucket}: {failed}")
        deleted.extend(batch)
    return deleted


def delete_prefix(s3, bucket: str, prefix: str) -> list[str]:
    """Delete every object below ``prefix``. Returns the deleted keys."""
    with provider_errors(f"s3:DeletePrefix s3://{bucket}/{prefix}"):
        keys = list(list_remote_objects(s3, bucket, prefix))
        deleted = delete_keys(s3, bucket, keys)
    logger.info("Deleted %d objects from s3://%s/%s", len(deleted), bucket, prefix)
    return deleted
