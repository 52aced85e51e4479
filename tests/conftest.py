"""Shared fixtures: in-memory S3, fake ffmpeg, isolated media directories."""

import functools
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from api import encoder


def _client_error(code: str, op: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class FakePaginator:
    def __init__(self, store, page_size):
        self.store = store
        self.page_size = page_size

    def paginate(self, Bucket, Prefix=""):
        keys = sorted(k for k in self.store.objects if k.startswith(Prefix))
        if not keys:
            yield {"KeyCount": 0}
            return
        for i in range(0, len(keys), self.page_size):
            chunk = keys[i:i + self.page_size]
            yield {
                "KeyCount": len(chunk),
                "Contents": [
                    {
                        "Key": k,
                        "Size": self.store.objects[k]["ContentLength"],
                        "LastModified": self.store.objects[k]["LastModified"],
                    }
                    for k in chunk
                ],
            }


class FakeS3:
    """The subset of the boto3 S3 client the pipeline uses."""

    def __init__(self, page_size=5):
        self.objects = {}
        self.uploads = []     # keys in upload order
        self.deletes = []     # keys in delete order
        self.fail_uploads = set()
        self.page_size = page_size

    def upload_file(self, Filename, Bucket, Key, ExtraArgs=None):
        if Key in self.fail_uploads:
            raise _client_error("InternalError", "PutObject")
        body = Path(Filename).read_bytes()
        self.objects[Key] = {
            "Body": body,
            "ContentLength": len(body),
            "LastModified": datetime(2026, 1, 1, tzinfo=timezone.utc),
            **(ExtraArgs or {}),
        }
        self.uploads.append(Key)

    def put(self, key, body=b"x"):
        self.objects[key] = {
            "Body": body,
            "ContentLength": len(body),
            "LastModified": datetime(2026, 1, 1, tzinfo=timezone.utc),
        }

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise _client_error("404", "HeadObject")
        obj = self.objects[Key]
        return {"ContentLength": obj["ContentLength"], "LastModified": obj["LastModified"],
                "ContentType": obj.get("ContentType")}

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return FakePaginator(self, self.page_size)

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        self.deletes.append(Key)

    def keys(self, prefix=""):
        return sorted(k for k in self.objects if k.startswith(prefix))


class FakeFFmpeg:
    """
    Stands in for subprocess.run: writes `segments` .ts files and an
    index.m3u8 where ffmpeg would, or fails for the named renditions.
    """

    def __init__(self, segments=2, fail_for=()):
        self.segments = segments
        self.fail_for = set(fail_for)
        self.calls = []

    def __call__(self, cmd, check=True, stdout=None, stderr=None):
        playlist = Path(cmd[-1])
        pattern = cmd[cmd.index("-hls_segment_filename") + 1]
        rendition = playlist.parent.name
        self.calls.append(rendition)
        if rendition in self.fail_for:
            raise subprocess.CalledProcessError(1, cmd, output=b"", stderr=b"Conversion failed!")

        lines = ["#EXTM3U", "#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:10"]
        for n in range(self.segments):
            seg = Path(pattern.replace("%d", str(n)))
            seg.write_bytes(b"\x47" * 188)
            lines += ["#EXTINF:10.000000,", seg.name]
        lines.append("#EXT-X-ENDLIST")
        playlist.write_text("\n".join(lines) + "\n")
        return subprocess.CompletedProcess(cmd, 0, b"", b"")


@pytest.fixture(autouse=True)
def media_dirs(settings, tmp_path):
    settings.HLS_UPLOAD_ROOT = tmp_path / "uploads"
    settings.HLS_OUTPUT_ROOT = tmp_path / "outputs"
    settings.S3_PUBLIC_ENDPOINT = "http://cdn.test"
    settings.S3_BUCKET = "media-test"
    settings.S3_PUBLIC_READ = True
    settings.HLS_RENDITIONS = ["480p", "720p"]
    settings.HLS_MAX_PARALLEL_RENDITIONS = 1
    settings.HLS_PROCESS_INLINE = False
    settings.HLS_KEEP_LOCAL_OUTPUT = True
    return tmp_path


@pytest.fixture
def fake_s3(monkeypatch):
    store = FakeS3()
    monkeypatch.setattr("api.s3.get_s3_client", lambda: store)
    return store


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    runner = FakeFFmpeg()
    monkeypatch.setattr("api.encoder.encode", functools.partial(encoder.encode, runner=runner))
    return runner


@pytest.fixture
def staged_input(media_dirs):
    uploads = media_dirs / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    path = uploads / "1700000000000-clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


def publish_fake(store, video_id, renditions=("480p", "720p"), segments=5):
    """Seed `store` with what a finished publish of video_id leaves behind."""
    prefix = f"videos/{video_id}"
    for name in renditions:
        store.put(f"{prefix}/{name}/index.m3u8", b"#EXTM3U\n")
        for n in range(segments):
            store.put(f"{prefix}/{name}/segment{n}.ts", b"\x47" * 188)
    store.put(f"{prefix}/master.m3u8", b"#EXTM3U\n" * 4)
