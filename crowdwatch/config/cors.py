# crowdwatch/config/cors.py
from fastapi.middleware.cors import CORSMiddleware

from crowdwatch.config.settings import CORS_ORIGINS

# Headers the dashboard client sends with analysis requests
ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# Attached explicitly to responder responses, even without an Origin header
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
}


def add_cors(app, extra_origins=None):
    """
    Attach CORS middleware to the FastAPI app.
    Origins come from CROWDWATCH_CORS_ORIGINS ("*" by default) + optional extras.
    """
    origins = list(CORS_ORIGINS)

    if extra_origins:
        origins.extend(extra_origins)

    allow_any = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_any else origins,
        # credentials cannot be combined with a wildcard origin
        allow_credentials=not allow_any,
        allow_methods=["*"],
        allow_headers=ALLOWED_HEADERS,
    )
