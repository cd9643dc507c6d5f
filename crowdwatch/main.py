# crowdwatch/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crowdwatch import __version__
from crowdwatch.config.cors import CORS_HEADERS, add_cors
from crowdwatch.config.settings import LIVE_FEED_ENABLED
from crowdwatch.exceptions import CrowdWatchError
from crowdwatch.live_feed import feed
from crowdwatch.logger import setup_logger
from crowdwatch.routes import analysis, dashboard, metrics, upload, videos
from crowdwatch.storage import init_db

logger = setup_logger("crowdwatch")

# -----------------------------
# App Initialization
# -----------------------------
app = FastAPI(
    title="CrowdWatch Backend",
    version=__version__,
    description="Backend API for the CrowdWatch surveillance dashboard "
                "(Dashboard analytics, Upload, Video analysis, Metrics)."
)

# -----------------------------
# Startup / Shutdown (DB init, live feed)
# -----------------------------
@app.on_event("startup")
async def startup_event():
    init_db()  # ensure tables exist (videos, analysis)
    if LIVE_FEED_ENABLED:
        feed.start()


@app.on_event("shutdown")
async def shutdown_event():
    await feed.stop()

# -----------------------------
# CORS Middleware
# -----------------------------
add_cors(app)

# -----------------------------
# Error handling
# -----------------------------
@app.exception_handler(CrowdWatchError)
async def crowdwatch_error_handler(request: Request, exc: CrowdWatchError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=CORS_HEADERS,
    )

# -----------------------------
# Global Middleware
# -----------------------------
@app.middleware("http")
async def api_version_header(request: Request, call_next):
    """Attach API version header to every response."""
    response = await call_next(request)
    response.headers["X-API-Version"] = "1"
    return response

# -----------------------------
# Healthcheck Root
# -----------------------------
@app.get("/", tags=["Health"])
def read_root():
    return {
        "status": "success",
        "message": "CrowdWatch Backend Running",
        "version": __version__
    }

# -----------------------------
# Routers
# -----------------------------
app.include_router(dashboard.router, prefix="/api/v1/dashboard",     tags=["Dashboard"])
app.include_router(upload.router,    prefix="/api/v1/upload",        tags=["Upload"])
app.include_router(videos.router,    prefix="/api/v1/videos",        tags=["Videos"])
app.include_router(analysis.router,  prefix="/api/v1/analyze-video", tags=["Analysis"])
app.include_router(metrics.router,   prefix="/api/v1/metrics",       tags=["Metrics"])
