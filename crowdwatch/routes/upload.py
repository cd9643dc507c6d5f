# crowdwatch/routes/upload.py
from fastapi import APIRouter, UploadFile, File, Form, HTTPException, status
from fastapi.responses import JSONResponse
from pathlib import Path
import time, uuid

from crowdwatch.config.settings import CHUNK_SIZE, MAX_UPLOAD_MB
from crowdwatch.exceptions import PersistenceError
from crowdwatch.logger import setup_logger
from crowdwatch.object_store import store
from crowdwatch.routes.metrics_store import metrics
from crowdwatch.storage import save_video

logger = setup_logger(__name__)

router = APIRouter()

VIDEO_MIME = {"video/mp4", "video/quicktime", "video/mov", "video/avi", "video/x-msvideo"}
VIDEO_EXTS = {".mp4", ".mov", ".avi"}


def _safe_ext(name: str) -> str:
    return Path(name).suffix.lower()


def _safe_user(user_id: str) -> str:
    cleaned = "".join(c for c in (user_id or "") if c.isalnum() or c in "-_")
    return cleaned or "anonymous"


@router.post("/", summary="Upload crowd footage (mp4/mov/avi)")
async def upload_video(
    file: UploadFile = File(..., description="mp4/mov/avi only"),
    user_id: str = Form("anonymous"),
):
    if not file or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="file is required",
        )

    ext = _safe_ext(file.filename)
    content_type = (file.content_type or "").lower()

    mime_ok = content_type in VIDEO_MIME if content_type else False
    ext_ok = ext in VIDEO_EXTS
    if not (mime_ok or ext_ok):
        raise HTTPException(status_code=400, detail="Please upload a video in MP4, MOV, or AVI format.")

    # Generate ID + object key: <user>/<video_id>.<ext>
    started = time.perf_counter()
    owner = _safe_user(user_id)
    video_id = str(uuid.uuid4())
    suffix = ext if ext_ok else ".mp4"
    key = f"{owner}/{video_id}{suffix}"
    dest_path = store.prepare(key)

    # Stream to disk with size guard
    max_bytes = MAX_UPLOAD_MB * 1024 * 1024
    written = 0
    try:
        with dest_path.open("wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    out.close()
                    dest_path.unlink(missing_ok=True)
                    raise HTTPException(status_code=413, detail=f"Please upload a video smaller than {MAX_UPLOAD_MB}MB.")
                out.write(chunk)
    except HTTPException:
        raise
    except Exception as e:
        dest_path.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        await file.close()

    # Record starts in "processing" until an analysis completes it
    try:
        rec = save_video(
            user_id=owner,
            title=file.filename,
            file_path=key,
            metadata={"size": written, "type": content_type, "originalName": file.filename},
            video_id=video_id,
        )
    except PersistenceError:
        store.delete(key)
        metrics.record("upload", (time.perf_counter() - started) * 1000, ok=False)
        raise

    logger.info(f"Stored upload {rec['id']} ({written} bytes) at {key}")
    metrics.record("upload", (time.perf_counter() - started) * 1000,
                   last_output={"video_id": rec["id"], "size_bytes": written})

    return JSONResponse(
        {
            **rec,
            "signed_url": store.signed_url(key),
            "original_filename": file.filename,
        }
    )
