import logging
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from . import s3
from .errors import PublishError
from .playlist import MASTER_NAME

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def walk_files(root: Path):
    """
    Depth-first walk using an explicit stack; yields regular files.
    Entries are visited in name order so publish order is stable.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        entries = sorted(current.iterdir(), key=lambda p: p.name)
        # Reversed so the first subdirectory is popped first
        for entry in reversed(entries):
            if entry.is_dir():
                stack.append(entry)
        for entry in entries:
            if entry.is_file():
                yield entry


def publish(local_dir, remote_prefix: str) -> int:
    """
    Upload every file under local_dir to <remote_prefix>/<relative path>.

    The root master playlist goes last: its presence is what marks the
    package ready. Any failure aborts with PublishError; objects already
    uploaded are left in place. Returns the number of objects uploaded.
    """
    base = Path(local_dir)
    remote_prefix = remote_prefix.rstrip("/")
    master = base / MASTER_NAME

    try:
        files = [p for p in walk_files(base) if p != master]
        has_master = master.is_file()
        client = s3.get_s3_client()
    except (OSError, BotoCoreError) as e:
        logger.error("Could not start publishing %s: %s", base, e)
        raise PublishError(str(base), str(e)) from e

    if has_master:
        files.append(master)
    else:
        logger.warning("Publishing %s without a master playlist", base)

    uploaded = 0
    for path in files:
        rel = path.relative_to(base).as_posix()
        key = f"{remote_prefix}/{rel}"
        try:
            s3.upload_file(
                path,
                key,
                content_type=content_type_for(path),
                cache_control=settings.HLS_CACHE_CONTROL,
                client=client,
            )
        except (ClientError, BotoCoreError, OSError) as e:
            logger.error("Upload of %s failed after %d objects: %s", key, uploaded, e)
            if uploaded:
                logger.warning(
                    "Orphaned objects left under %s/ (%d uploaded); clean up out of band",
                    remote_prefix, uploaded,
                )
            raise PublishError(key, str(e), uploaded=uploaded) from e
        uploaded += 1

    logger.info("Published %d objects under %s/", uploaded, remote_prefix)
    return uploaded
