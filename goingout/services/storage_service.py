"""S3-compatible object storage for post media, group pictures and albums."""
from __future__ import annotations

import logging
import os
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_PREFIXES = ("image/", "video/")


@dataclass(frozen=True)
class StorageConfig:
    key: str
    secret: str
    region: str
    bucket: str
    endpoint: str
    public_url: str


@dataclass(frozen=True)
class StorageUploadResult:
    url: str
    key: str
    content_type: str


class StorageConfigurationError(RuntimeError):
    """Raised when the object storage settings are missing or invalid."""


class StorageUploadError(RuntimeError):
    """Raised when an upload to object storage fails."""


class UnsupportedMediaTypeError(StorageUploadError):
    """Raised for uploads that are neither images nor videos."""


@lru_cache(maxsize=1)
def load_storage_config() -> StorageConfig:
    """Read the bucket settings from ``STORAGE_*`` environment variables."""

    try:
        key = require_secret("STORAGE_KEY")
        secret = require_secret("STORAGE_SECRET")
    except MissingSecretError as exc:
        raise StorageConfigurationError(str(exc)) from exc

    region = (os.getenv("STORAGE_REGION") or "").strip()
    bucket = (os.getenv("STORAGE_BUCKET") or "").strip()
    endpoint = (os.getenv("STORAGE_ENDPOINT") or "").strip().rstrip("/")
    if is_placeholder(region):
        raise StorageConfigurationError("STORAGE_REGION must be set")
    if is_placeholder(bucket):
        raise StorageConfigurationError("STORAGE_BUCKET must be set")
    if is_placeholder(endpoint):
        raise StorageConfigurationError("STORAGE_ENDPOINT must point to the S3-compatible API")
    if not urlparse(endpoint).scheme:
        endpoint = f"https://{endpoint.lstrip(':/')}"

    public_url = (os.getenv("STORAGE_PUBLIC_URL") or "").strip().rstrip("/")
    if not public_url:
        parsed = urlparse(endpoint)
        public_url = f"{parsed.scheme}://{bucket}.{parsed.netloc}"

    return StorageConfig(
        key=key,
        secret=secret,
        region=region,
        bucket=bucket,
        endpoint=endpoint,
        public_url=public_url,
    )


@lru_cache(maxsize=1)
def get_storage_client() -> BaseClient:
    config = load_storage_config()
    return Session().client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
    )


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-._")
        if cleaned:
            sanitized.append(cleaned)
    return sanitized


def object_key(filename: str | None, folder: str) -> str:
    """Random object name under ``folder`` keeping a safe file extension."""

    extension = Path(filename or "").suffix.lower()
    if extension and not re.fullmatch(r"\.[A-Za-z0-9]{1,10}", extension):
        extension = ""
    safe_folder = "/".join(_sanitize_segments((folder or "uploads").replace("\\", "/").split("/"))) or "uploads"
    return f"{safe_folder}/{uuid.uuid4().hex}{extension}"


def group_picture_key(group_id: uuid.UUID, kind: str) -> str:
    """Fixed key for a group's profile or cover image, e.g. ``groups/<id>/cover.jpg``."""

    if kind not in {"profile", "cover"}:
        raise ValueError(f"Unknown group picture kind: {kind}")
    return f"groups/{group_id}/{kind}.jpg"


def build_public_url(key: str) -> str:
    config = load_storage_config()
    return f"{config.public_url}/{key.lstrip('/')}"


async def upload_file(
    file: UploadFile,
    *,
    folder: str = "uploads",
    key: str | None = None,
    client: BaseClient | None = None,
) -> StorageUploadResult:
    """Upload an image or video and return its public URL.

    ``key`` overrides the generated object name so fixed paths (group
    pictures) are overwritten in place.
    """

    content_type = (file.content_type or "").strip().lower()
    if not content_type.startswith(ALLOWED_MEDIA_PREFIXES):
        raise UnsupportedMediaTypeError("Only image and video uploads are supported")

    config = load_storage_config()
    s3_client = client or get_storage_client()
    object_name = key or object_key(file.filename, folder)
    file_obj = file.file

    def _upload() -> None:
        file_obj.seek(0)
        s3_client.upload_fileobj(
            file_obj,
            config.bucket,
            object_name,
            ExtraArgs={"ACL": "public-read", "ContentType": content_type},
        )

    try:
        await run_in_threadpool(_upload)
    except (ClientError, BotoCoreError) as exc:
        logger.exception("Upload to object storage failed")
        raise StorageUploadError("Upload to object storage failed") from exc

    return StorageUploadResult(url=build_public_url(object_name), key=object_name, content_type=content_type)


async def upload_or_raise_http(file: UploadFile, *, folder: str = "uploads", key: str | None = None) -> StorageUploadResult:
    """:func:`upload_file` with storage errors mapped onto HTTP errors."""

    try:
        return await upload_file(file, folder=folder, key=key)
    except StorageConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Media storage is not configured") from exc
    except UnsupportedMediaTypeError as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc
    except StorageUploadError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


__all__ = [
    "StorageConfig",
    "StorageUploadResult",
    "StorageConfigurationError",
    "StorageUploadError",
    "UnsupportedMediaTypeError",
    "load_storage_config",
    "get_storage_client",
    "object_key",
    "group_picture_key",
    "build_public_url",
    "upload_file",
    "upload_or_raise_http",
]
