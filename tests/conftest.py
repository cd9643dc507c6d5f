import os
import random
import tempfile
import uuid

# Settings are read at import time: point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="crowdwatch-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["CROWDWATCH_VIDEO_DIR"] = os.path.join(_TMP_DIR, "videos")
os.environ["CROWDWATCH_LIVE_FEED"] = "0"
os.environ["CROWDWATCH_ANALYZER"] = "random"

import pytest
from fastapi.testclient import TestClient

from crowdwatch.main import app
from crowdwatch.routes.metrics_store import metrics
from crowdwatch.storage import save_video


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def video():
    """A stored record in status "processing"."""
    video_id = str(uuid.uuid4())
    return save_video(
        user_id="tester",
        title="crowd.mp4",
        file_path=f"tester/{video_id}.mp4",
        metadata={"size": 10, "type": "video/mp4", "originalName": "crowd.mp4"},
        video_id=video_id,
    )


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
