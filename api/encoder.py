import logging
import subprocess
from pathlib import Path

from django.conf import settings

from .errors import EncodeError
from .renditions import RenditionSpec

logger = logging.getLogger(__name__)

SEGMENT_SECONDS = 10
# Fixed GOP with scene-cut keyframes disabled keeps segment boundaries
# aligned across renditions.
GOP_SIZE = 48
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"

PLAYLIST_NAME = "index.m3u8"
SEGMENT_PATTERN = "segment%d.ts"

STDERR_TAIL = 2000


def build_command(input_path, rendition: RenditionSpec, out_dir: Path) -> list[str]:
    return [
        settings.FFMPEG_BIN,
        "-y",
        "-i", str(input_path),
        "-c:v", VIDEO_CODEC,
        "-s", rendition.resolution,
        "-b:v", f"{rendition.video_bitrate}k",
        "-c:a", AUDIO_CODEC,
        "-preset", settings.FFMPEG_PRESET,
        "-g", str(GOP_SIZE),
        "-sc_threshold", "0",
        "-hls_time", str(SEGMENT_SECONDS),
        "-hls_list_size", "0",
        "-hls_segment_filename", str(out_dir / SEGMENT_PATTERN),
        str(out_dir / PLAYLIST_NAME),
    ]


def encode(input_path, rendition: RenditionSpec, output_dir, *, runner=subprocess.run) -> Path:
    """
    Encode one rendition into output_dir/<rendition.name>/ as HLS
    (index.m3u8 + segment<N>.ts). Returns the sub-playlist path.

    Raises EncodeError when ffmpeg exits non-zero, cannot be started, or
    finishes without writing the playlist. Never retries.
    """
    out_dir = Path(output_dir) / rendition.name
    out_dir.mkdir(parents=True, exist_ok=True)
    playlist = out_dir / PLAYLIST_NAME

    cmd = build_command(input_path, rendition, out_dir)
    logger.info("Encoding %s (%s @ %sk) from %s", rendition.name, rendition.resolution,
                rendition.video_bitrate, input_path)
    try:
        runner(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except subprocess.CalledProcessError as e:
        err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
        logger.error("ffmpeg failed for %s (exit %s)", rendition.name, e.returncode)
        raise EncodeError(rendition.name, err[-STDERR_TAIL:]) from e
    except OSError as e:
        # Missing binary, permission denied, ...
        logger.error("Could not run ffmpeg for %s: %s", rendition.name, e)
        raise EncodeError(rendition.name, str(e)) from e

    if not playlist.is_file():
        raise EncodeError(rendition.name, f"ffmpeg produced no playlist at {playlist}")

    logger.info("Encoded %s -> %s", rendition.name, playlist)
    return playlist
