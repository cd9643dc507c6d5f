# crowdwatch/routes/analysis.py
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as SchemaError

from crowdwatch.config.cors import CORS_HEADERS
from crowdwatch.exceptions import CrowdWatchError, NotFoundError, PersistenceError, ValidationError
from crowdwatch.inference import build_analyzer
from crowdwatch.logger import setup_logger
from crowdwatch.models import AnalyzeRequest, AnalyzeResponse
from crowdwatch.routes.metrics_store import metrics
from crowdwatch.storage import get_video, mark_video_completed, save_analysis

logger = setup_logger(__name__)

router = APIRouter()

# Inference provider (random stand-in unless CROWDWATCH_ANALYZER=remote)
analyzer = build_analyzer()


# -------------------------------
# CORS preflight
# -------------------------------
@router.options("", include_in_schema=False)
async def analyze_video_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


# -------------------------------
# Request parsing
# -------------------------------
async def _parse_request(request: Request) -> AnalyzeRequest:
    """Body problems are user errors (400), never FastAPI's default 422."""
    body = await request.body()
    if not body.strip():
        return AnalyzeRequest()
    try:
        return AnalyzeRequest.model_validate_json(body)
    except SchemaError as e:
        logger.info(f"Rejected analysis request body: {e.errors()[0].get('msg')}")
        raise ValidationError("Invalid request body: expected {\"videoId\": \"<id>\"}") from e


# -------------------------------
# Analysis responder
# -------------------------------
@router.post("", summary="Run crowd analysis for a stored video and persist the result",
             response_model=AnalyzeResponse)
async def analyze_video(request: Request):
    # 1) Validate input
    req = await _parse_request(request)
    video_id = (req.video_id or "").strip()
    if not video_id:
        raise ValidationError("Missing video ID")

    # 2) Lookup the record; any lookup failure reads as "not found"
    try:
        video = get_video(video_id)
    except PersistenceError as e:
        logger.error(f"Video lookup failed for {video_id}: {e}")
        video = None
    if not video:
        raise NotFoundError("Video not found")

    logger.info(f"Processing video analysis for video ID: {video_id}")
    started = time.perf_counter()
    ok = False
    try:
        # 3) Run the model
        results = analyzer.analyze(video)
        payload = results.model_dump(mode="json", by_alias=True)

        # 4) Persist; no retry, no rollback of an analysis row already written
        try:
            save_analysis(video_id, payload["crowdDensity"], payload["incidents"])
        except PersistenceError as e:
            logger.error(f"Error saving analysis: {e}")
            raise

        # 5) processing -> completed
        try:
            mark_video_completed(video_id)
        except PersistenceError as e:
            logger.error(f"Error updating video status: {e}")
            raise

        ok = True
        logger.info("Video analysis completed successfully")
        body = AnalyzeResponse(results=results).model_dump(mode="json", by_alias=True)
        return JSONResponse(content=body, headers=CORS_HEADERS)

    except CrowdWatchError:
        raise
    except Exception as e:
        logger.error(f"Error analyzing video: {e}", exc_info=True)
        raise CrowdWatchError(str(e)) from e
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        metrics.record("analysis", elapsed_ms, last_output={"video_id": video_id}, ok=ok)
