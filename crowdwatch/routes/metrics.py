# crowdwatch/routes/metrics.py
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from crowdwatch.routes.metrics_store import metrics  # <- use the singleton
from crowdwatch.storage import store_summary

router = APIRouter()


@router.get("", summary="Request metrics and store counts")  # GET /api/v1/metrics
async def get_metrics():
    snap = metrics.snapshot()  # {"analysis": {...}, "upload": {...}}

    out = {
        name: {
            "calls":          snap.get(name, {}).get("calls", 0),
            "errors":         snap.get(name, {}).get("errors", 0),
            "avg_latency_ms": snap.get(name, {}).get("avg_latency_ms", 0.0),
            "last_request":   snap.get(name, {}).get("last_request"),
            "last_output":    snap.get(name, {}).get("last_output"),
        }
        for name in snap
    }
    out["store"] = store_summary()
    return JSONResponse(content=out)
