# crowdwatch/inference.py
import math
import random
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as SchemaError

from crowdwatch.config.settings import ANALYZER, CROWD_SVC_TIMEOUT_S, CROWD_SVC_URL
from crowdwatch.exceptions import InferenceError
from crowdwatch.logger import log_execution_time, setup_logger
from crowdwatch.models import AnalysisResults, CrowdDensitySummary, DensityRegion, Incident
from crowdwatch.synthetic import to_iso, utcnow

logger = setup_logger(__name__)

MODEL_CONFIDENCE = 0.92

# Fixed region rectangles (x, y, width, height) with (base, spread) for their density draw
REGIONS = (
    ((0.1, 0.2, 0.3, 0.4), (0.2, 0.7)),
    ((0.5, 0.6, 0.2, 0.3), (0.1, 0.8)),
    ((0.7, 0.1, 0.25, 0.25), (0.0, 0.9)),
)

HIGH_TYPES = ("overcrowding", "suspicious activity", "restricted area violation", "abnormal movement")
HIGH_LOCATIONS = ("northeast corner", "main entrance", "center area", "west section", "south exit")
MEDIUM_TYPES = ("suspicious activity", "unusual gathering", "potential security concern")
MEDIUM_LOCATIONS = ("north section", "east entrance", "perimeter area", "central plaza")


class CrowdAnalyzer(ABC):
    """Inference provider: turns a stored video record into crowd analysis results."""

    @abstractmethod
    def analyze(self, video: Dict[str, Any]) -> AnalysisResults:
        ...


# -------------------------------
# Random stand-in for the model
# -------------------------------
class RandomCrowdAnalyzer(CrowdAnalyzer):
    """
    Replace this dummy with real crowd inference.
    People count, overall density and region densities are uniform draws;
    incident count and severity are tiered by the overall density.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def draw_people_count(self) -> int:
        return math.floor(self.rng.random() * 150) + 50

    def draw_overall(self) -> float:
        return self.rng.random() * 0.8 + 0.1  # between 0.1 and 0.9

    def crowd_density(self, people_count: int, overall: float) -> CrowdDensitySummary:
        regions = [
            DensityRegion(x=x, y=y, width=w, height=h, density=self.rng.random() * spread + base)
            for (x, y, w, h), (base, spread) in REGIONS
        ]
        return CrowdDensitySummary(
            overall=overall,
            total_people_count=people_count,
            confidence=MODEL_CONFIDENCE,
            regions=regions,
        )

    def incidents_for(self, overall: float, people_count: int) -> List[Incident]:
        rng = self.rng
        incidents = []

        if overall > 0.7:
            for _ in range(math.floor(rng.random() * 3) + 2):  # 2-4 incidents
                if rng.random() > 0.6:
                    severity = "high"
                elif rng.random() > 0.4:
                    severity = "medium"
                else:
                    severity = "low"
                incidents.append(self._incident(
                    type=rng.choice(HIGH_TYPES),
                    severity=severity,
                    active=rng.random() > 0.3,
                    location=rng.choice(HIGH_LOCATIONS),
                    description=f"Potential {rng.choice(HIGH_TYPES)} detected with {people_count} people in view",
                ))

        elif overall > 0.4:
            for _ in range(math.floor(rng.random() * 2) + 1):  # 1-2 incidents
                incidents.append(self._incident(
                    type=rng.choice(MEDIUM_TYPES),
                    severity="medium" if rng.random() > 0.7 else "low",
                    active=rng.random() > 0.5,
                    location=rng.choice(MEDIUM_LOCATIONS),
                    description=f"Moderate concern with {people_count} people detected in the area",
                ))

        elif rng.random() > 0.7:
            incidents.append(self._incident(
                type="unusual activity",
                severity="low",
                active=rng.random() > 0.5,
                location="south perimeter",
                description=f"Minor concern detected with {people_count} people in low-density area",
            ))

        return incidents

    @staticmethod
    def _incident(type: str, severity: str, active: bool, location: str, description: str) -> Incident:
        return Incident(
            id=str(uuid.uuid4()),
            type=type,
            severity=severity,
            status="active" if active else "resolved",
            location=location,
            description=description,
            timestamp=to_iso(utcnow()),
        )

    @log_execution_time(logger)
    def analyze(self, video: Dict[str, Any]) -> AnalysisResults:
        people_count = self.draw_people_count()
        overall = self.draw_overall()
        crowd_density = self.crowd_density(people_count, overall)
        incidents = self.incidents_for(overall, people_count)

        logger.info(
            f"Analysis generated {len(incidents)} incidents with {people_count} people counted "
            f"(video={video.get('id')}, overall={overall:.2f})"
        )
        return AnalysisResults(crowd_density=crowd_density, incidents=incidents)


# -------------------------------
# Remote model service
# -------------------------------
class RemoteCrowdAnalyzer(CrowdAnalyzer):
    """
    Delegates to a model service: POST {base_url}/analyze with the record,
    expects {"crowdDensity": {...}, "incidents": [...]} back.
    """

    def __init__(self, base_url: str = CROWD_SVC_URL, timeout: float = CROWD_SVC_TIMEOUT_S,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @log_execution_time(logger)
    def analyze(self, video: Dict[str, Any]) -> AnalysisResults:
        payload = {
            "video_id": video.get("id"),
            "file_path": video.get("file_path"),
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(f"{self.base_url}/analyze", json=payload)
        except httpx.HTTPError as e:
            raise InferenceError(f"crowd service unreachable: {e}") from e

        if resp.status_code != 200:
            raise InferenceError(f"crowd service error: {resp.text}")

        try:
            return AnalysisResults.model_validate(resp.json())
        except (ValueError, SchemaError) as e:
            raise InferenceError(f"invalid crowd service response: {e}") from e


def build_analyzer(kind: str = ANALYZER) -> CrowdAnalyzer:
    if kind == "remote":
        return RemoteCrowdAnalyzer()
    if kind == "random":
        return RandomCrowdAnalyzer()
    raise ValueError(f"unknown analyzer backend: {kind}")
