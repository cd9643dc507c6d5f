# crowdwatch/routes/videos.py
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import FileResponse

from crowdwatch.config.settings import SIGNED_URL_TTL_S
from crowdwatch.exceptions import NotFoundError
from crowdwatch.object_store import store
from crowdwatch.storage import get_analysis, get_video, list_videos

router = APIRouter()

MEDIA_TYPES = {".mp4": "video/mp4", ".mov": "video/quicktime", ".avi": "video/x-msvideo"}


def _require_video(video_id: str) -> dict:
    rec = get_video(video_id)
    if not rec:
        raise NotFoundError("Video not found")
    return rec


@router.get("/", summary="List videos (newest first) with their latest analysis")
async def get_videos(user_id: Optional[str] = None, limit: int = Query(50, ge=1, le=500)):
    videos = list_videos(user_id=user_id, limit=limit)
    # a video without analysis yet is returned with analysis=None
    return [{**v, "analysis": get_analysis(v["id"])} for v in videos]


@router.get("/files/{key:path}", summary="Download a stored video through a signed URL")
async def get_video_file(key: str, expires: int, signature: str):
    if not store.verify(key, expires, signature):
        raise HTTPException(status_code=403, detail="invalid or expired signature")
    if not store.exists(key):
        raise HTTPException(status_code=404, detail="file missing in storage")
    path = store.path_for(key)
    return FileResponse(path, media_type=MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream"))


@router.get("/{video_id}", summary="Get a video record")
async def get_video_record(video_id: str):
    return _require_video(video_id)


@router.get("/{video_id}/analysis", summary="Latest analysis for a video")
async def get_video_analysis(video_id: str):
    _require_video(video_id)
    analysis = get_analysis(video_id)
    if not analysis:
        raise NotFoundError("Analysis not found")
    return analysis


@router.get("/{video_id}/url", summary="Signed URL for a stored video")
async def get_video_url(video_id: str, expires_in: int = Query(SIGNED_URL_TTL_S, ge=1, le=7 * 24 * 3600)):
    rec = _require_video(video_id)
    return {"id": rec["id"], "signed_url": store.signed_url(rec["file_path"], expires_in=expires_in)}
