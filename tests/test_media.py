import asyncio
import io
import os
import subprocess
from unittest.mock import MagicMock

from fastapi import UploadFile

import media
from media import SupabaseMediaUploader, probe_duration, save_upload_to_temp


def fake_client(public_url="https://project.supabase.co/storage/v1/object/public/videos/obj.mp4"):
    client = MagicMock()
    bucket = client.storage.from_.return_value
    bucket.get_public_url.return_value = public_url
    return client, bucket


def test_upload_returns_public_url_and_removes_local_file(make_file, monkeypatch):
    monkeypatch.setattr(media, "probe_duration", lambda path: 12.5)
    client, bucket = fake_client()
    path = make_file("clip.mp4", b"video")

    result = SupabaseMediaUploader(bucket="videos", client=client).upload(path)

    assert result.url == "https://project.supabase.co/storage/v1/object/public/videos/obj.mp4"
    assert result.duration == 12.5
    assert result.content_type == "video/mp4"
    kwargs = bucket.upload.call_args.kwargs
    assert kwargs["file"] == b"video"
    assert kwargs["path"].endswith(".mp4")
    assert not os.path.exists(path)


def test_images_are_not_probed(make_file, monkeypatch):
    monkeypatch.setattr(media, "probe_duration", MagicMock(side_effect=AssertionError("probed")))
    client, _ = fake_client()
    result = SupabaseMediaUploader(client=client).upload(make_file("thumb.jpg"))
    assert result.duration == 0.0
    assert result.content_type == "image/jpeg"


def test_upload_failure_returns_none_and_removes_local_file(make_file):
    client, bucket = fake_client()
    bucket.upload.side_effect = RuntimeError("bucket not found")
    path = make_file("thumb.jpg")

    assert SupabaseMediaUploader(client=client).upload(path) is None
    assert not os.path.exists(path)


def test_upload_of_missing_file(tmp_path):
    client, bucket = fake_client()
    assert SupabaseMediaUploader(client=client).upload(str(tmp_path / "gone.mp4")) is None
    bucket.upload.assert_not_called()


def test_delete_uses_object_name_from_url():
    client, bucket = fake_client()
    uploader = SupabaseMediaUploader(bucket="videos", client=client)
    assert uploader.delete("https://project.supabase.co/storage/v1/object/public/videos/abc.jpg?t=1")
    bucket.remove.assert_called_once_with(["abc.jpg"])


def test_probe_duration_gives_up_after_timeout(make_file, monkeypatch):
    def hang(command, **kwargs):
        assert kwargs["timeout"] == media.PROBE_TIMEOUT
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(media.subprocess, "run", hang)
    assert probe_duration(make_file("clip.mp4")) == 0.0


def test_probe_duration_without_ffprobe(make_file, monkeypatch):
    monkeypatch.setattr(media, "FFPROBE_BINARY", "ffprobe-that-does-not-exist")
    assert probe_duration(make_file("clip.mp4")) == 0.0


def test_save_upload_to_temp(tmp_path, monkeypatch):
    monkeypatch.setattr(media, "UPLOAD_TEMP_DIR", str(tmp_path / "uploads"))
    upload = UploadFile(file=io.BytesIO(b"x" * 3000), filename="clip.mp4")

    path = asyncio.run(save_upload_to_temp(upload))

    assert path.startswith(str(tmp_path / "uploads"))
    assert path.endswith(".mp4")
    with open(path, "rb") as f:
        assert f.read() == b"x" * 3000
    assert asyncio.run(save_upload_to_temp(None)) is None
