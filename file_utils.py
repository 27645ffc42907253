import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from fastapi import UploadFile

from config import settings
from errors import AuthorizationDenied, UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bucket:
    name: str
    mime_prefix: str
    extensions: frozenset
    max_bytes: Callable[[], int]


IMAGES = Bucket(
    name="images",
    mime_prefix="image/",
    extensions=frozenset({'.png', '.jpg', '.jpeg', '.webp', '.gif'}),
    max_bytes=lambda: settings.image_max_bytes,
)
VIDEOS = Bucket(
    name="videos",
    mime_prefix="video/",
    extensions=frozenset({'.mp4', '.mov', '.avi', '.webm', '.mkv'}),
    max_bytes=lambda: settings.video_max_bytes,
)
BUCKETS = {b.name: b for b in (IMAGES, VIDEOS)}


def bucket_folder(bucket: Bucket) -> str:
    return os.path.join(settings.upload_folder, bucket.name)


def object_path(bucket: Bucket, key: str) -> str:
    """Filesystem path for ``key``; keys must stay inside the bucket"""
    root = Path(bucket_folder(bucket)).resolve()
    path = (root / key).resolve()
    if root not in path.parents:
        raise UploadError("Invalid object key")
    return str(path)


def object_url(bucket: Bucket, key: str) -> str:
    return f"/cdn/{bucket.name}/{key}"


def parse_object_url(url: Optional[str]) -> Optional[Tuple[Bucket, str]]:
    """Inverse of ``object_url``; external URLs give ``None``"""
    if not url or not url.startswith("/cdn/"):
        return None
    bucket_name, _, key = url[len("/cdn/"):].partition("/")
    bucket = BUCKETS.get(bucket_name)
    if bucket is None or not key:
        return None
    return bucket, key


def generate_uuid_filename(original_filename: str, bucket: Bucket) -> str:
    """Generate a UUID filename with original extension"""
    ext = Path(original_filename or "").suffix.lower()
    if ext not in bucket.extensions:
        raise UploadError(f"Unsupported file type for {bucket.name}.")
    return f"{uuid.uuid4()}{ext}"


def save_object(bucket: Bucket, owner_id: str, filename: str, content: bytes, content_type: Optional[str]) -> str:
    """Write a new object under ``{owner_id}/`` and return its key. Objects are never overwritten."""
    if not content_type or not content_type.startswith(bucket.mime_prefix):
        raise UploadError(f"Only {bucket.mime_prefix}* files are accepted.")
    if not content:
        raise UploadError("Empty file.")
    if len(content) > bucket.max_bytes():
        raise UploadError(f"File exceeds {bucket.max_bytes() // (1024 * 1024)}MB limit.")
    key = f"{owner_id}/{generate_uuid_filename(filename, bucket)}"
    path = object_path(bucket, key)
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'xb') as f:
            f.write(content)
    except FileExistsError:
        raise UploadError("Object already exists.")
    except OSError as e:
        logger.error("Failed to store %s/%s: %s", bucket.name, key, e)
        raise UploadError("Could not store file.") from e
    logger.info("Stored %s/%s (%d bytes)", bucket.name, key, len(content))
    return key


def save_upload(bucket: Bucket, owner_id: str, file: UploadFile) -> str:
    """Store an uploaded file and return its public URL"""
    content = file.file.read()
    key = save_object(bucket, owner_id, file.filename, content, file.content_type)
    return object_url(bucket, key)


def delete_object(bucket: Bucket, owner_id: str, key: str) -> bool:
    """Delete an object from the owner's own prefix"""
    if key.split("/", 1)[0] != owner_id:
        raise AuthorizationDenied("Objects can only be deleted by their owner")
    path = object_path(bucket, key)
    if not os.path.exists(path):
        return False
    os.remove(path)
    logger.info("Deleted %s/%s", bucket.name, key)
    return True


def delete_object_by_url(owner_id: str, url: Optional[str]) -> bool:
    """Remove a stored object referenced by an entity. External URLs are left alone."""
    parsed = parse_object_url(url)
    if parsed is None:
        return False
    bucket, key = parsed
    try:
        return delete_object(bucket, owner_id, key)
    except (OSError, AuthorizationDenied) as e:
        logger.warning("Could not delete %s: %s", url, e)
        return False


def ensure_owned_object(owner_id: str, url: Optional[str]):
    """Entities may reference external URLs or objects the actor uploaded, nothing else"""
    if not url or not url.startswith("/cdn/"):
        return
    parsed = parse_object_url(url)
    if parsed is None:
        raise UploadError("Unknown storage bucket")
    bucket, key = parsed
    if key.split("/", 1)[0] != owner_id:
        raise AuthorizationDenied("Cannot reference another user's upload")
    if not os.path.exists(object_path(bucket, key)):
        raise UploadError("Referenced upload does not exist")
