import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

import database
from auth import Requester, get_current_user
from config import ALLOWED_ORIGINS, DEFAULT_PAGE_LIMIT, LOG_FILE, LOG_LEVEL, MAX_PAGE_LIMIT, PORT
from errors import ApiResponse, add_exception_handlers, ok
from logging_config import setup_logging
from media import MediaUploader, SupabaseMediaUploader, remove_local_file, save_upload_to_temp
from repository import VideoRepository
from schemas import ListVideosParams, VideoUpdate
from service import VideoService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    setup_logging(LOG_LEVEL, LOG_FILE)
    database.ensure_indexes()
    logger.info("VideoTube API started")
    yield
    if database.client is not None:
        database.client.close()
    logger.info("VideoTube API shutting down")


app = FastAPI(title="VideoTube API", description="Video hosting backend", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
add_exception_handlers(app)


# Wire up the dependencies
media_uploader = SupabaseMediaUploader()


def get_uploader() -> MediaUploader:
    return media_uploader


def get_video_service(
    db: Database = Depends(database.get_database),
    uploader: MediaUploader = Depends(get_uploader),
) -> VideoService:
    return VideoService(VideoRepository(db), uploader)


@app.get("/")
def read_root():
    return {"message": "Video hosting backend running"}


@app.get("/health")
def health():
    return {"backend": "running", "database": database.ping()}


router = APIRouter(prefix="/api/videos", tags=["Videos"])


@router.get("", response_model=ApiResponse)
def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    query: str = Query(""),
    sortBy: str = Query("createdAt"),
    sortType: Optional[str] = Query("desc"),
    userId: Optional[str] = Query(None),
    service: VideoService = Depends(get_video_service),
):
    """List videos matching `query` in title or description, sorted and paginated."""
    params = ListVideosParams(
        query=query, sortBy=sortBy, sortType=sortType, page=page, limit=limit, userId=userId
    )
    return ok(service.list_videos(params), "Videos fetched successfully")


@router.post("", response_model=ApiResponse)
async def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    videoFile: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user: Requester = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    """
    Publish a video.
    - Buffers both files under UPLOAD_TEMP_DIR
    - Uploads the video, then the thumbnail, to media storage
    - Stores the record owned by the requester
    """
    video_path = thumbnail_path = None
    try:
        video_path = await save_upload_to_temp(videoFile)
        thumbnail_path = await save_upload_to_temp(thumbnail)
    except Exception:
        remove_local_file(video_path)
        remove_local_file(thumbnail_path)
        raise
    video = await run_in_threadpool(
        service.publish_video, user, title, description, video_path, thumbnail_path
    )
    return ok(video, "Video uploaded successfully")


@router.get("/{video_id}", response_model=ApiResponse)
def get_video(video_id: str, service: VideoService = Depends(get_video_service)):
    return ok(service.get_video(video_id), "Video fetched successfully")


@router.patch("/{video_id}", response_model=ApiResponse)
def update_video(
    video_id: str,
    body: VideoUpdate,
    user: Requester = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    video = service.update_video(user, video_id, body.title, body.description)
    return ok(video, "Video details updated successfully")


@router.patch("/{video_id}/thumbnail", response_model=ApiResponse)
async def update_video_thumbnail(
    video_id: str,
    thumbnail: Optional[UploadFile] = File(None),
    user: Requester = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    thumbnail_path = await save_upload_to_temp(thumbnail)
    video = await run_in_threadpool(service.update_thumbnail, user, video_id, thumbnail_path)
    return ok(video, "Video thumbnail updated successfully")


@router.delete("/{video_id}", response_model=ApiResponse)
def delete_video(
    video_id: str,
    user: Requester = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    return ok(service.delete_video(user, video_id), "Video deleted successfully")


@router.patch("/{video_id}/toggle", response_model=ApiResponse)
def toggle_publish_status(
    video_id: str,
    user: Requester = Depends(get_current_user),
    service: VideoService = Depends(get_video_service),
):
    return ok(service.toggle_publish_status(user, video_id), "Toggled publish status successfully")


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
