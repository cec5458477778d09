from typing import List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, utc_now
from pipelines import build_detail_pipeline, build_list_pipeline
from schemas import VIDEOS, ListVideosParams, Video


class VideoRepository:
    """Persistence for video documents. All queries run inside MongoDB."""

    def __init__(self, database: Database):
        self.collection = database[VIDEOS]
        self.database = database

    def list_summaries(self, params: ListVideosParams) -> List[dict]:
        return list(self.collection.aggregate(build_list_pipeline(params)))

    def get_detail(self, video_id: ObjectId) -> Optional[dict]:
        docs = list(self.collection.aggregate(build_detail_pipeline(video_id)))
        return docs[0] if docs else None

    def find_by_id(self, video_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one({"_id": video_id})

    def insert(self, video: Video) -> dict:
        inserted_id = create_document(self.database, VIDEOS, video)
        return self.find_by_id(ObjectId(inserted_id))

    def update_fields(self, video_id: ObjectId, fields: dict) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": video_id},
            {"$set": {**fields, "updatedAt": utc_now()}},
            return_document=ReturnDocument.AFTER,
        )

    def toggle_published(self, video_id: ObjectId) -> Optional[dict]:
        # Update pipeline: the flip happens atomically on the server
        return self.collection.find_one_and_update(
            {"_id": video_id},
            [{"$set": {"isPublished": {"$not": ["$isPublished"]}, "updatedAt": utc_now()}}],
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, video_id: ObjectId) -> Optional[dict]:
        return self.collection.find_one_and_delete({"_id": video_id})
