import mimetypes
import os
import re
import time
from pathlib import Path

from django.conf import settings

from .errors import IntakeError

# Containers ffmpeg reads that the platform mimetypes table may not know
VIDEO_EXTENSIONS = {
    ".mp4", ".m4v", ".mov", ".mkv", ".webm", ".avi", ".mpeg", ".mpg",
    ".ts", ".m2ts", ".flv", ".wmv", ".3gp",
}

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")
MAX_SUFFIX_ATTEMPTS = 1000
MAX_STEM_LENGTH = 100
MAX_SUFFIX_LENGTH = 16


def guess_kind(path: str) -> str:
    """Return 'image' | 'video' | 'other' based on mimetype/extension."""
    if Path(path).suffix.lower() in VIDEO_EXTENSIONS:
        return "video"
    mime, _ = mimetypes.guess_type(path)
    if not mime:
        return "other"
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("video/"):
        return "video"
    return "other"


def _now_ms() -> int:
    return int(time.time() * 1000)


def safe_filename(name: str) -> str:
    """
    Sanitized basename, short enough that the staged name and videoId stay
    far below filesystem and Job.video_id limits.
    """
    name = _UNSAFE.sub("_", os.path.basename(name or "")).strip("._")
    stem, suffix = os.path.splitext(name)
    stem = stem[:MAX_STEM_LENGTH] or "upload"
    return stem + suffix[:MAX_SUFFIX_LENGTH]


def video_id_for(staged_path) -> str:
    """videoId is the staged filename without its extension."""
    return Path(staged_path).stem


def validate_upload(djangofile):
    if djangofile is None:
        raise IntakeError("No file uploaded.")
    name = djangofile.name or ""
    kind = guess_kind(name)
    if kind == "other":
        content_type = getattr(djangofile, "content_type", "") or ""
        if content_type.startswith("video/"):
            kind = "video"
    if kind != "video":
        raise IntakeError(f"Unsupported file type: {name or 'unnamed'} is not a video.")
    if not djangofile.size:
        raise IntakeError("Uploaded file is empty.")


def _claim_path(uploads_dir: Path, stem: str, suffix: str):
    """
    Open a new staging file exclusively. On a name clash append -1, -2, ...
    to the stem so two uploads never share a videoId.
    """
    for n in range(MAX_SUFFIX_ATTEMPTS):
        candidate = uploads_dir / (f"{stem}{suffix}" if n == 0 else f"{stem}-{n}{suffix}")
        try:
            return candidate, open(candidate, "xb")
        except FileExistsError:
            continue
    raise IntakeError(f"Could not allocate a staging name for {stem}{suffix}")


def save_uploaded_file(djangofile) -> Path:
    """Save to HLS_UPLOAD_ROOT/<epoch_ms>-<name> and return the staged path."""
    uploads_dir = Path(settings.HLS_UPLOAD_ROOT)
    uploads_dir.mkdir(parents=True, exist_ok=True)

    name = safe_filename(djangofile.name)
    stem, suffix = os.path.splitext(name)
    dest, f = _claim_path(uploads_dir, f"{_now_ms()}-{stem}", suffix.lower())
    with f:
        for chunk in djangofile.chunks():
            f.write(chunk)
    return dest
