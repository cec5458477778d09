"""
Video operations: listing, lookup, publishing, editing, deleting and
publish-status toggling.

Every operation validates its input before touching the database. Database
and storage exceptions are not caught here; they reach the global handler.
"""

import logging
from typing import List, Optional

from bson import ObjectId

from auth import Requester
from errors import BadRequest, NotFound, ServerError, Unauthorized
from media import MediaUploader, remove_local_file
from pipelines import build_match, build_sort, parse_object_id
from repository import VideoRepository
from schemas import ListVideosParams, Video, VideoDetail, VideoSummary, serialize_document

logger = logging.getLogger(__name__)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class VideoService:
    def __init__(self, repository: VideoRepository, uploader: MediaUploader):
        self.repository = repository
        self.uploader = uploader

    # Queries

    def list_videos(self, params: ListVideosParams) -> List[dict]:
        # Validate sortBy and userId up front so bad input never reaches the db
        build_match(params)
        build_sort(params)
        docs = self.repository.list_summaries(params)
        return [VideoSummary(**serialize_document(d)).model_dump() for d in docs]

    def get_video(self, video_id: str) -> dict:
        object_id = parse_object_id(video_id)
        doc = self.repository.get_detail(object_id)
        if not doc:
            raise NotFound("Video does not exist")
        return VideoDetail(**serialize_document(doc)).model_dump()

    # Mutations

    def _owned_video(self, requester: Requester, object_id: ObjectId) -> dict:
        video = self.repository.find_by_id(object_id)
        if not video:
            raise NotFound("Video not found")
        if video.get("owner") != requester.id:
            logger.warning(f"User {requester.id} is not the owner of video {object_id}")
            raise Unauthorized("Only the owner can modify this video")
        return video

    def publish_video(
        self,
        requester: Requester,
        title: Optional[str],
        description: Optional[str],
        video_path: Optional[str],
        thumbnail_path: Optional[str],
    ) -> dict:
        try:
            if is_blank(title) or is_blank(description):
                raise BadRequest("Title and description are required")
            if not video_path or not thumbnail_path:
                raise BadRequest("Video and thumbnail file are required to publish a video")
        except BadRequest:
            remove_local_file(video_path)
            remove_local_file(thumbnail_path)
            raise

        video_file = self.uploader.upload(video_path)
        if not video_file or not video_file.url:
            remove_local_file(thumbnail_path)
            raise ServerError("Failed to upload the video file")

        thumbnail = self.uploader.upload(thumbnail_path)
        if not thumbnail or not thumbnail.url:
            self.uploader.delete(video_file.url)
            raise ServerError("Failed to upload the thumbnail")

        video = Video(
            title=title.strip(),
            description=description.strip(),
            videoFile=video_file.url,
            thumbnail=thumbnail.url,
            duration=video_file.duration,
            owner=requester.id,
        )
        created = self.repository.insert(video)
        logger.info(f"Video {created['_id']} published by user {requester.id}")
        return serialize_document(created)

    def update_video(
        self,
        requester: Requester,
        video_id: str,
        title: Optional[str],
        description: Optional[str],
    ) -> dict:
        object_id = parse_object_id(video_id)
        fields = {}
        if not is_blank(title):
            fields["title"] = title.strip()
        if not is_blank(description):
            fields["description"] = description.strip()
        if not fields:
            raise BadRequest("Title or description is required")

        self._owned_video(requester, object_id)
        updated = self.repository.update_fields(object_id, fields)
        if not updated:
            raise NotFound("Video not found")
        logger.info(f"Video {object_id} details updated by user {requester.id}")
        return serialize_document(updated)

    def update_thumbnail(self, requester: Requester, video_id: str, thumbnail_path: Optional[str]) -> dict:
        try:
            object_id = parse_object_id(video_id)
            if not thumbnail_path:
                raise BadRequest("Thumbnail file is missing")
            video = self._owned_video(requester, object_id)
        except (BadRequest, NotFound, Unauthorized):
            remove_local_file(thumbnail_path)
            raise

        thumbnail = self.uploader.upload(thumbnail_path)
        if not thumbnail or not thumbnail.url:
            raise ServerError("Error while uploading the thumbnail")

        updated = self.repository.update_fields(object_id, {"thumbnail": thumbnail.url})
        if not updated:
            self.uploader.delete(thumbnail.url)
            raise NotFound("Video not found")

        if video.get("thumbnail"):
            self.uploader.delete(video["thumbnail"])
        logger.info(f"Video {object_id} thumbnail updated by user {requester.id}")
        return serialize_document(updated)

    def delete_video(self, requester: Requester, video_id: str) -> dict:
        object_id = parse_object_id(video_id)
        self._owned_video(requester, object_id)

        deleted = self.repository.delete(object_id)
        if not deleted:
            raise NotFound("Video not found")

        for url in (deleted.get("videoFile"), deleted.get("thumbnail")):
            if url:
                self.uploader.delete(url)
        logger.info(f"Video {object_id} deleted by user {requester.id}")
        return serialize_document(deleted)

    def toggle_publish_status(self, requester: Requester, video_id: str) -> dict:
        object_id = parse_object_id(video_id)
        self._owned_video(requester, object_id)

        updated = self.repository.toggle_published(object_id)
        if not updated:
            raise NotFound("Video not found")
        logger.info(f"Video {object_id} isPublished={updated['isPublished']} (user {requester.id})")
        return {"isPublished": updated["isPublished"]}
