"""
Media hosting: buffers multipart uploads on disk and pushes them to Supabase Storage.
"""

import logging
import mimetypes
import os
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from fastapi import UploadFile
from supabase import Client, create_client

from config import (
    FFPROBE_BINARY,
    MEDIA_BUCKET,
    SUPABASE_PROJECT_URL,
    SUPABASE_SERVICE_KEY,
    UPLOAD_TEMP_DIR,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
PROBE_TIMEOUT = 30


@dataclass
class UploadResult:
    url: str
    duration: float = 0.0
    content_type: str = "application/octet-stream"


class MediaUploader(Protocol):
    def upload(self, local_path: str) -> Optional[UploadResult]: ...

    def delete(self, url: str) -> bool: ...


def remove_local_file(local_path: Optional[str]) -> None:
    if local_path and os.path.exists(local_path):
        os.remove(local_path)


def probe_duration(local_path: str) -> float:
    """
    Read a media file's duration with ffprobe.

    Returns 0.0 when ffprobe is missing, times out or cannot parse the file.
    """
    command = [
        FFPROBE_BINARY,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        local_path,
    ]
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
            text=True,
            timeout=PROBE_TIMEOUT,
        )
        return round(float(result.stdout.strip()), 3)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError, ValueError) as e:
        logger.warning(f"Could not probe duration of {local_path}: {e}")
        return 0.0


async def save_upload_to_temp(file: Optional[UploadFile]) -> Optional[str]:
    """Stream an UploadFile to UPLOAD_TEMP_DIR and return the local path."""
    if file is None or not file.filename:
        return None

    os.makedirs(UPLOAD_TEMP_DIR, exist_ok=True)
    destination = os.path.join(UPLOAD_TEMP_DIR, f"{uuid.uuid4()}{Path(file.filename).suffix}")

    try:
        with open(destination, "wb") as buffer:
            while chunk := await file.read(CHUNK_SIZE):
                buffer.write(chunk)
    except Exception:
        remove_local_file(destination)
        raise
    await file.close()
    return destination


class SupabaseMediaUploader:
    """
    Uploads local files to a Supabase Storage bucket.

    The local file is removed after every upload attempt, successful or not.
    """

    def __init__(self, bucket: str = MEDIA_BUCKET, client: Optional[Client] = None):
        self.bucket = bucket
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            if not all([SUPABASE_PROJECT_URL, SUPABASE_SERVICE_KEY]):
                raise RuntimeError("SUPABASE_PROJECT_URL and SUPABASE_SERVICE_KEY must be set for media uploads")
            self._client = create_client(SUPABASE_PROJECT_URL, SUPABASE_SERVICE_KEY)
        return self._client

    def upload(self, local_path: str) -> Optional[UploadResult]:
        if not local_path or not os.path.exists(local_path):
            logger.error(f"Upload skipped, file not found: {local_path}")
            return None

        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        object_name = f"{uuid.uuid4()}{Path(local_path).suffix}"

        try:
            duration = probe_duration(local_path) if content_type.startswith("video/") else 0.0

            with open(local_path, "rb") as f:
                self.client.storage.from_(self.bucket).upload(
                    path=object_name,
                    file=f.read(),
                    file_options={"content-type": content_type, "upsert": "false"},
                )
            url = self.client.storage.from_(self.bucket).get_public_url(object_name)
            logger.info(f"Uploaded {os.path.basename(local_path)} to {self.bucket}/{object_name}")
            return UploadResult(url=url, duration=duration, content_type=content_type)
        except Exception as e:
            logger.error(f"Failed to upload {local_path} to Supabase Storage: {e}")
            return None
        finally:
            remove_local_file(local_path)

    def delete(self, url: str) -> bool:
        if not url:
            return False
        object_name = url.split("?")[0].rstrip("/").split("/")[-1]
        try:
            self.client.storage.from_(self.bucket).remove([object_name])
            logger.info(f"Deleted {self.bucket}/{object_name}")
            return True
        except Exception as e:
            logger.warning(f"Error deleting {object_name} from Supabase Storage: {e}")
            return False
