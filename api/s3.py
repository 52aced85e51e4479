import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from django.conf import settings

from .playlist import MASTER_NAME

VIDEOS_PREFIX = "videos"

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def get_s3_client():
    """
    SDK client for server-side upload/list/delete.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


def check_video_id(video_id: str) -> str:
    """Reject ids that could widen a key prefix beyond one video."""
    if not video_id or "/" in video_id or "\\" in video_id or video_id in (".", ".."):
        raise ValueError(f"Invalid video id: {video_id!r}")
    return video_id


def video_prefix(video_id: str) -> str:
    return f"{VIDEOS_PREFIX}/{check_video_id(video_id)}"


def master_key(video_id: str) -> str:
    return f"{video_prefix(video_id)}/{MASTER_NAME}"


def object_url(key: str) -> str:
    """
    Direct object URL against the PUBLIC endpoint. Published packages are
    public-read, and players resolve sub-playlists relative to this URL.
    """
    base = settings.S3_PUBLIC_ENDPOINT
    return f"{base.rstrip('/')}/{settings.S3_BUCKET}/{key}"


def is_missing(err: ClientError) -> bool:
    return str(err.response.get("Error", {}).get("Code")) in _MISSING_CODES


def upload_file(local_path, key: str, content_type: str | None = None, cache_control: str | None = None, client=None):
    """
    Upload a single file to S3/MinIO with optional Content-Type / Cache-Control.
    """
    s3 = client or get_s3_client()
    extra = {}
    if content_type:
        extra["ContentType"] = content_type
    if cache_control:
        extra["CacheControl"] = cache_control
    if settings.S3_PUBLIC_READ:
        extra["ACL"] = "public-read"
    s3.upload_file(str(local_path), settings.S3_BUCKET, key, ExtraArgs=extra or None)


def head_object(key: str, client=None) -> dict | None:
    """Object metadata, or None when the key does not exist."""
    s3 = client or get_s3_client()
    try:
        return s3.head_object(Bucket=settings.S3_BUCKET, Key=key)
    except ClientError as e:
        if is_missing(e):
            return None
        raise


def list_objects(prefix: str, client=None):
    """Yield every object dict (Key, LastModified, Size, ...) under prefix."""
    s3 = client or get_s3_client()
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=settings.S3_BUCKET, Prefix=prefix):
        yield from page.get("Contents", [])


def delete_object(key: str, client=None):
    s3 = client or get_s3_client()
    s3.delete_object(Bucket=settings.S3_BUCKET, Key=key)
