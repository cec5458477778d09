import os
import re
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import main
import media
from auth import Requester
from media import UploadResult, remove_local_file
from schemas import ListVideosParams
from service import VideoService

SUMMARY_FIELDS = ("_id", "thumbnail", "videoFile", "title", "description", "owner")


class FakeVideoRepository:
    """In-memory stand-in for VideoRepository with the same query semantics."""

    def __init__(self):
        self.videos = {}
        self.users = {}
        self.likes = []
        self.calls = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def add_user(self, full_name, username):
        user_id = ObjectId()
        self.users[user_id] = {
            "_id": user_id,
            "fullName": full_name,
            "username": username,
            "avatar": f"https://cdn.example.com/{username}.png",
            "email": f"{username}@example.com",
        }
        return user_id

    def add_video(self, owner, title, description="", **extra):
        now = self._tick()
        doc = {
            "_id": ObjectId(),
            "title": title,
            "description": description,
            "videoFile": f"https://cdn.example.com/{title}.mp4",
            "thumbnail": f"https://cdn.example.com/{title}.jpg",
            "duration": 10.0,
            "isPublished": False,
            "owner": owner,
            "createdAt": now,
            "updatedAt": now,
        }
        doc.update(extra)
        self.videos[doc["_id"]] = doc
        return doc["_id"]

    def _owner_summary(self, owner_id):
        user = self.users.get(owner_id)
        if not user:
            return None
        return {key: user[key] for key in ("_id", "fullName", "username", "avatar")}

    def list_summaries(self, params: ListVideosParams):
        self.calls.append("list_summaries")
        pattern = re.compile(re.escape(params.query or ""), re.IGNORECASE)
        docs = [
            d for d in self.videos.values()
            if pattern.search(d.get("title") or "") or pattern.search(d.get("description") or "")
        ]
        if params.userId:
            docs = [d for d in docs if d["owner"] == ObjectId(params.userId)]
        reverse = params.sortType != "asc"
        docs.sort(key=lambda d: (d.get(params.sortBy), d["_id"]), reverse=reverse)
        docs = docs[params.skip:params.skip + params.limit]
        result = []
        for d in docs:
            item = {key: d[key] for key in SUMMARY_FIELDS}
            item["owner"] = self._owner_summary(d["owner"])
            result.append(item)
        return result

    def get_detail(self, video_id):
        self.calls.append("get_detail")
        doc = self.videos.get(video_id)
        if not doc:
            return None
        detail = dict(doc)
        detail["owner"] = self._owner_summary(doc["owner"])
        detail["likes"] = sum(1 for like in self.likes if like["video"] == video_id)
        return detail

    def find_by_id(self, video_id):
        self.calls.append("find_by_id")
        doc = self.videos.get(video_id)
        return dict(doc) if doc else None

    def insert(self, video):
        self.calls.append("insert")
        now = self._tick()
        doc = {"_id": ObjectId(), **video.model_dump(), "createdAt": now, "updatedAt": now}
        self.videos[doc["_id"]] = doc
        return dict(doc)

    def update_fields(self, video_id, fields):
        self.calls.append("update_fields")
        doc = self.videos.get(video_id)
        if not doc:
            return None
        doc.update(fields, updatedAt=self._tick())
        return dict(doc)

    def toggle_published(self, video_id):
        self.calls.append("toggle_published")
        doc = self.videos.get(video_id)
        if not doc:
            return None
        doc["isPublished"] = not doc["isPublished"]
        return dict(doc)

    def delete(self, video_id):
        self.calls.append("delete")
        return self.videos.pop(video_id, None)


class FakeUploader:
    """Records uploads; fails for paths listed in `failing`."""

    def __init__(self, duration=42.5):
        self.duration = duration
        self.failing = set()
        self.uploaded = []
        self.deleted = []

    def upload(self, local_path):
        name = os.path.basename(local_path)
        remove_local_file(local_path)
        if local_path in self.failing or name in self.failing:
            return None
        self.uploaded.append(local_path)
        is_video = name.endswith(".mp4")
        return UploadResult(
            url=f"https://storage.example.com/videos/{name}",
            duration=self.duration if is_video else 0.0,
            content_type="video/mp4" if is_video else "image/jpeg",
        )

    def delete(self, url):
        self.deleted.append(url)
        return True


@pytest.fixture
def repo():
    return FakeVideoRepository()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def service(repo, uploader):
    return VideoService(repo, uploader)


@pytest.fixture
def owner(repo):
    return Requester(id=repo.add_user("Ada Lovelace", "ada"))


@pytest.fixture
def stranger(repo):
    return Requester(id=repo.add_user("Grace Hopper", "grace"))


@pytest.fixture
def make_file(tmp_path):
    def _make(name, content=b"data"):
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)
    return _make


@pytest.fixture
def client(service, tmp_path, monkeypatch):
    monkeypatch.setattr(media, "UPLOAD_TEMP_DIR", str(tmp_path / "uploads"))
    main.app.dependency_overrides[main.get_video_service] = lambda: service
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()
