import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from api.errors import IntakeError
from api.utils import guess_kind, safe_filename, save_uploaded_file, validate_upload, video_id_for


@pytest.mark.parametrize("name,kind", [
    ("clip.mp4", "video"),
    ("CLIP.MOV", "video"),
    ("movie.mkv", "video"),
    ("photo.jpg", "image"),
    ("notes.txt", "other"),
    ("noext", "other"),
])
def test_guess_kind(name, kind):
    assert guess_kind(name) == kind


def test_safe_filename():
    assert safe_filename("../../etc/My Clip (1).mp4") == "My_Clip_1_.mp4"
    assert safe_filename("") == "upload"


def test_video_id_drops_extension():
    assert video_id_for("/tmp/uploads/1700000000000-clip.mp4") == "1700000000000-clip"


def test_validate_accepts_video_by_content_type():
    f = SimpleUploadedFile("recording", b"data", content_type="video/webm")
    validate_upload(f)


@pytest.mark.parametrize("upload", [
    None,
    SimpleUploadedFile("notes.txt", b"hi", content_type="text/plain"),
    SimpleUploadedFile("photo.png", b"hi", content_type="video/mp4"),
    SimpleUploadedFile("clip.mp4", b"", content_type="video/mp4"),
])
def test_validate_rejects(upload):
    with pytest.raises(IntakeError):
        validate_upload(upload)


def test_staged_name_is_timestamp_prefixed(settings, monkeypatch):
    monkeypatch.setattr("api.utils._now_ms", lambda: 1700000000123)
    path = save_uploaded_file(SimpleUploadedFile("clip.MP4", b"abc"))

    assert path == settings.HLS_UPLOAD_ROOT / "1700000000123-clip.mp4"
    assert path.read_bytes() == b"abc"


def test_same_millisecond_uploads_get_distinct_ids(settings, monkeypatch):
    monkeypatch.setattr("api.utils._now_ms", lambda: 1700000000000)
    first = save_uploaded_file(SimpleUploadedFile("clip.mp4", b"1"))
    second = save_uploaded_file(SimpleUploadedFile("clip.mp4", b"2"))
    third = save_uploaded_file(SimpleUploadedFile("clip.mp4", b"3"))

    assert [video_id_for(p) for p in (first, second, third)] == [
        "1700000000000-clip", "1700000000000-clip-1", "1700000000000-clip-2",
    ]
    assert second.read_bytes() == b"2"


def test_staging_gives_up_eventually(settings, monkeypatch):
    monkeypatch.setattr("api.utils.MAX_SUFFIX_ATTEMPTS", 0)
    with pytest.raises(IntakeError):
        save_uploaded_file(SimpleUploadedFile("clip.mp4", b"abc"))


def test_safe_filename_caps_long_names():
    name = safe_filename("a" * 250 + ".mp4")
    assert name == "a" * 100 + ".mp4"
    assert safe_filename("clip." + "x" * 40) == "clip." + "x" * 15


def test_long_upload_name_stages_under_name_limit(settings, monkeypatch):
    monkeypatch.setattr("api.utils._now_ms", lambda: 1700000000000)
    path = save_uploaded_file(SimpleUploadedFile("a" * 250 + ".mp4", b"abc"))

    assert path.is_file()
    assert len(path.name) < 255
    assert video_id_for(path) == "1700000000000-" + "a" * 100
