# crowdwatch/config/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# -----------------------------
# Database
# -----------------------------
DATABASE_URL = os.getenv("DATABASE_URL")

# -----------------------------
# Uploads / object store
# -----------------------------
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "100"))
CHUNK_SIZE = 1024 * 1024  # 1 MB

PACKAGE_DIR = Path(__file__).resolve().parents[1]  # crowdwatch/
VIDEO_DIR = Path(os.getenv("CROWDWATCH_VIDEO_DIR", str(PACKAGE_DIR.parent / "uploaded_videos")))

SIGNING_SECRET = os.getenv("CROWDWATCH_SIGNING_SECRET", "dev-only-signing-secret")
SIGNED_URL_TTL_S = int(os.getenv("CROWDWATCH_SIGNED_URL_TTL_S", "3600"))

# -----------------------------
# HTTP
# -----------------------------
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CROWDWATCH_CORS_ORIGINS", "*").split(",") if o.strip()
]

# -----------------------------
# Analysis backend
# -----------------------------
ANALYZER = os.getenv("CROWDWATCH_ANALYZER", "random").lower()   # "random" | "remote"
CROWD_SVC_URL = os.getenv("CROWD_SVC_URL", "http://127.0.0.1:8002")
CROWD_SVC_TIMEOUT_S = float(os.getenv("CROWD_SVC_TIMEOUT_S", "30"))

# -----------------------------
# Live feed (polling intervals, seconds)
# -----------------------------
LIVE_FEED_ENABLED = os.getenv("CROWDWATCH_LIVE_FEED", "1") not in {"0", "false", "no"}
LIVE_COUNT_INTERVAL_S = float(os.getenv("LIVE_COUNT_INTERVAL_S", "5"))
INCIDENT_FEED_INTERVAL_S = float(os.getenv("INCIDENT_FEED_INTERVAL_S", "60"))
PEOPLE_DETECTED_INTERVAL_S = float(os.getenv("PEOPLE_DETECTED_INTERVAL_S", "3"))

# -----------------------------
# Logging
# -----------------------------
LOG_LEVEL = os.getenv("CROWDWATCH_LOG_LEVEL", "INFO").upper()
