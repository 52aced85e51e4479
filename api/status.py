"""
Read side of the published package store.

Storage is the only source of truth: a video is ready exactly when its
master playlist object exists. There is no separate job-state lookup, so
"never existed", "still encoding" and "failed before publish" all read as
processing.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from . import s3
from .errors import VideoNotFound
from .playlist import MASTER_NAME

logger = logging.getLogger(__name__)

PROCESSING = "processing"
READY = "ready"


@dataclass(frozen=True)
class VideoStatus:
    video_id: str
    status: str
    master_playlist_url: str | None = None
    updated_at: datetime | None = None
    size: int | None = None

    @property
    def ready(self) -> bool:
        return self.status == READY


@dataclass(frozen=True)
class VideoSummary:
    video_id: str
    master_playlist_url: str
    updated_at: datetime | None
    size: int | None


def resolve_status(video_id: str) -> VideoStatus:
    key = s3.master_key(video_id)
    meta = s3.head_object(key)
    if meta is None:
        return VideoStatus(video_id=video_id, status=PROCESSING)
    return VideoStatus(
        video_id=video_id,
        status=READY,
        master_playlist_url=s3.object_url(key),
        updated_at=meta.get("LastModified"),
        size=meta.get("ContentLength"),
    )


def _video_id_from_master(key: str) -> str | None:
    # videos/<id>/master.m3u8
    parts = key.split("/")
    if len(parts) == 3 and parts[0] == s3.VIDEOS_PREFIX and parts[2] == MASTER_NAME and parts[1]:
        return parts[1]
    return None


def list_videos() -> list[VideoSummary]:
    out = []
    for obj in s3.list_objects(f"{s3.VIDEOS_PREFIX}/"):
        video_id = _video_id_from_master(obj["Key"])
        if video_id is None:
            continue
        out.append(VideoSummary(
            video_id=video_id,
            master_playlist_url=s3.object_url(obj["Key"]),
            updated_at=obj.get("LastModified"),
            size=obj.get("Size"),
        ))
    return out


def delete_video(video_id: str) -> int:
    """
    Delete every object under videos/<id>/, one request per object.
    Not atomic: concurrent readers may see a partial package meanwhile.
    """
    prefix = f"{s3.video_prefix(video_id)}/"
    client = s3.get_s3_client()
    keys = [obj["Key"] for obj in s3.list_objects(prefix, client=client)]
    if not keys:
        raise VideoNotFound(video_id)

    # Master first, so the video stops reading as ready before anything else goes
    keys.sort(key=lambda k: k != f"{prefix}{MASTER_NAME}")
    for key in keys:
        s3.delete_object(key, client=client)
    logger.info("Deleted %d objects under %s", len(keys), prefix)
    return len(keys)
