from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class RenditionSpec:
    name: str
    width: int
    height: int
    video_bitrate: int  # kbit/s

    @property
    def bandwidth(self) -> int:
        """Bits per second, as advertised in the master playlist."""
        return self.video_bitrate * 1000

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"


# Ascending quality; master playlists list renditions in this order.
CATALOG = (
    RenditionSpec("360p", 640, 360, 800),
    RenditionSpec("480p", 854, 480, 1400),
    RenditionSpec("720p", 1280, 720, 2800),
)

DEFAULT_RENDITIONS = ("480p", "720p")


def get_renditions(names=None) -> tuple[RenditionSpec, ...]:
    """
    Return the active rendition table, lowest bitrate first.
    `names` defaults to settings.HLS_RENDITIONS.
    """
    if names is None:
        names = getattr(settings, "HLS_RENDITIONS", None) or DEFAULT_RENDITIONS
    by_name = {r.name: r for r in CATALOG}

    unknown = [n for n in names if n not in by_name]
    if unknown:
        raise ImproperlyConfigured(
            f"Unknown renditions: {unknown}. Allowed: {[r.name for r in CATALOG]}"
        )
    picked = {by_name[n] for n in names}
    if not picked:
        raise ImproperlyConfigured("At least one rendition must be configured")
    return tuple(sorted(picked, key=lambda r: (r.video_bitrate, r.height)))
