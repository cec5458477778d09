"""
Aggregation pipelines for the videos collection.

Listing:  $match -> $lookup owner -> $addFields -> $sort -> $project -> $skip -> $limit
Detail:   $match _id -> $lookup owner -> $lookup likes -> $addFields
"""

import re
from typing import List

from bson import ObjectId

from errors import BadRequest
from schemas import LIKES, USERS, ListVideosParams

SORTABLE_FIELDS = ("title", "description", "duration", "createdAt", "updatedAt")

SUMMARY_PROJECTION = {
    "thumbnail": 1,
    "videoFile": 1,
    "title": 1,
    "description": 1,
    "owner": 1,
}


def parse_object_id(value, field: str = "videoId") -> ObjectId:
    if value is None or not str(value).strip():
        raise BadRequest(f"{field} is required")
    value = str(value).strip()
    if not ObjectId.is_valid(value):
        raise BadRequest(f"{field} is not a valid id")
    return ObjectId(value)


def owner_lookup() -> List[dict]:
    return [
        {
            "$lookup": {
                "from": USERS,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [
                    {"$project": {"fullName": 1, "username": 1, "avatar": 1}}
                ],
            }
        },
    ]


def build_match(params: ListVideosParams) -> dict:
    # Literal substring match; "" matches every document
    regex = {"$regex": re.escape(params.query or ""), "$options": "i"}
    match = {"$or": [{"title": regex}, {"description": regex}]}
    if params.userId:
        match["owner"] = parse_object_id(params.userId, field="userId")
    return match


def build_sort(params: ListVideosParams) -> dict:
    if params.sortBy not in SORTABLE_FIELDS:
        raise BadRequest(f"sortBy must be one of: {', '.join(SORTABLE_FIELDS)}")
    direction = 1 if params.sortType == "asc" else -1
    # _id keeps ties in a stable order across pages
    return {params.sortBy: direction, "_id": direction}


def build_list_pipeline(params: ListVideosParams) -> List[dict]:
    return [
        {"$match": build_match(params)},
        *owner_lookup(),
        {"$addFields": {"owner": {"$first": "$owner"}}},
        {"$sort": build_sort(params)},
        {"$project": SUMMARY_PROJECTION},
        {"$skip": params.skip},
        {"$limit": params.limit},
    ]


def build_detail_pipeline(video_id: ObjectId) -> List[dict]:
    return [
        {"$match": {"_id": video_id}},
        *owner_lookup(),
        {
            "$lookup": {
                "from": LIKES,
                "localField": "_id",
                "foreignField": "video",
                "as": "likes",
            }
        },
        {
            "$addFields": {
                "owner": {"$first": "$owner"},
                "likes": {"$size": "$likes"},
            }
        },
    ]
