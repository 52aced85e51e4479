from pathlib import Path

from .encoder import PLAYLIST_NAME

MASTER_NAME = "master.m3u8"


def synthesize(results) -> str:
    """
    Build the master playlist text from successful RenditionResults.

    Entries are emitted in input order; callers pass results sorted by
    ascending quality.
    """
    results = list(results)
    if not results:
        raise ValueError("Cannot build a master playlist without renditions")

    lines = ["#EXTM3U"]
    for res in results:
        if not res.ok:
            raise ValueError(f"Rendition {res.spec.name} did not succeed")
        spec = res.spec
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={spec.bandwidth},RESOLUTION={spec.resolution}")
        lines.append(f"{spec.name}/{PLAYLIST_NAME}")
    return "\n".join(lines) + "\n"


def write_master(output_dir, results) -> tuple[Path, str]:
    text = synthesize(results)
    path = Path(output_dir) / MASTER_NAME
    path.write_text(text, encoding="utf-8")
    return path, text
