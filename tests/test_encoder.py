import subprocess

import pytest

from api.encoder import GOP_SIZE, SEGMENT_SECONDS, build_command, encode
from api.errors import EncodeError
from api.renditions import RenditionSpec

from .conftest import FakeFFmpeg

R480 = RenditionSpec("480p", 854, 480, 1400)


def _arg(cmd, flag):
    return cmd[cmd.index(flag) + 1]


def test_command_carries_rendition_parameters(settings, tmp_path):
    settings.FFMPEG_BIN = "/opt/ffmpeg/bin/ffmpeg"
    cmd = build_command("in.mp4", R480, tmp_path / "480p")

    assert cmd[0] == "/opt/ffmpeg/bin/ffmpeg"
    assert _arg(cmd, "-i") == "in.mp4"
    assert _arg(cmd, "-c:v") == "libx264"
    assert _arg(cmd, "-s") == "854x480"
    assert _arg(cmd, "-b:v") == "1400k"
    assert _arg(cmd, "-c:a") == "aac"
    assert _arg(cmd, "-g") == str(GOP_SIZE) == "48"
    assert _arg(cmd, "-sc_threshold") == "0"
    assert _arg(cmd, "-hls_time") == str(SEGMENT_SECONDS) == "10"
    assert _arg(cmd, "-hls_list_size") == "0"
    assert _arg(cmd, "-hls_segment_filename") == str(tmp_path / "480p" / "segment%d.ts")
    assert cmd[-1] == str(tmp_path / "480p" / "index.m3u8")


def test_encode_writes_into_rendition_directory(tmp_path):
    runner = FakeFFmpeg(segments=3)
    playlist = encode("in.mp4", R480, tmp_path, runner=runner)

    assert playlist == tmp_path / "480p" / "index.m3u8"
    assert playlist.is_file()
    assert sorted(p.name for p in (tmp_path / "480p").glob("*.ts")) == [
        "segment0.ts", "segment1.ts", "segment2.ts",
    ]
    assert runner.calls == ["480p"]


def test_codec_failure_names_the_rendition(tmp_path):
    runner = FakeFFmpeg(fail_for={"480p"})
    with pytest.raises(EncodeError) as exc:
        encode("in.mp4", R480, tmp_path, runner=runner)
    assert exc.value.rendition == "480p"
    assert "Conversion failed!" in exc.value.detail


def test_missing_binary_is_an_encode_error(tmp_path):
    def runner(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    with pytest.raises(EncodeError, match="480p"):
        encode("in.mp4", R480, tmp_path, runner=runner)


def test_success_without_playlist_is_an_encode_error(tmp_path):
    def runner(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0)

    with pytest.raises(EncodeError, match="no playlist"):
        encode("in.mp4", R480, tmp_path, runner=runner)
