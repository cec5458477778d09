"""
Database Schemas

MongoDB collection schemas and API payload models, defined with Pydantic.

Collections used by the video service:
- Video -> "videos" collection
- users -> "users" collection (read-only here, joined for owner summaries)
- likes -> "likes" collection (read-only here, counted per video)
"""

from datetime import datetime
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

VIDEOS = "videos"
USERS = "users"
LIKES = "likes"


class Video(BaseModel):
    """
    Videos collection schema
    Collection name: "videos"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str = Field(..., min_length=1, description="Video title")
    description: str = Field(..., min_length=1, description="Video description")
    videoFile: str = Field(..., min_length=1, description="Public URL of the hosted video file")
    thumbnail: str = Field(..., min_length=1, description="Public URL of the hosted thumbnail")
    duration: float = Field(0, ge=0, description="Duration in seconds reported by the media host")
    isPublished: bool = Field(False, description="Publish flag, flipped only by its owner")
    owner: ObjectId = Field(..., description="Reference to the owning user")


class OwnerSummary(BaseModel):
    id: str
    fullName: Optional[str] = None
    username: Optional[str] = None
    avatar: Optional[str] = None


class VideoSummary(BaseModel):
    """Shape of one item returned by the listing endpoint"""
    id: str
    title: str
    description: str
    videoFile: str
    thumbnail: str
    owner: Optional[OwnerSummary] = None


class VideoDetail(VideoSummary):
    duration: float = 0
    isPublished: bool = False
    likes: int = 0
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class VideoUpdate(BaseModel):
    title: Optional[str] = Field(None, description="New title")
    description: Optional[str] = Field(None, description="New description")


class ListVideosParams(BaseModel):
    query: str = Field("", description="Case-insensitive text matched against title or description")
    sortBy: str = Field("createdAt", description="Field to sort by")
    sortType: Optional[str] = Field("desc", description="\"asc\" sorts ascending, anything else descending")
    page: int = Field(1, ge=1, description="1-based page number")
    limit: int = Field(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT, description="Page size")
    userId: Optional[str] = Field(None, description="Only videos owned by this user")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def serialize_document(value: Any) -> Any:
    """Make a pymongo document JSON friendly: ObjectId -> str, "_id" -> "id"."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            result["id" if key == "_id" else key] = serialize_document(item)
        return result
    return value


def serialize_documents(docs: List[dict]) -> List[dict]:
    return [serialize_document(d) for d in docs]
