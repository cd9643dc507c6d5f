# crowdwatch/models.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]
IncidentStatus = Literal["active", "resolved"]
VideoStatus = Literal["processing", "completed"]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# -------------------------------
# Dashboard analytics
# -------------------------------
class AreaStatistic(CamelModel):
    id: str
    name: str
    current_count: int = Field(..., ge=0)
    capacity: int = Field(..., gt=0)
    density: int = Field(..., ge=0, description="round(current_count / capacity * 100)")
    incidents: int = Field(0, ge=0)


class CrowdDensitySample(CamelModel):
    timestamp: str
    density: int
    total: int


class Incident(CamelModel):
    id: str
    type: str
    severity: Severity
    status: IncidentStatus
    location: str
    description: str
    timestamp: str


# -------------------------------
# Analysis results
# -------------------------------
class DensityRegion(CamelModel):
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    width: float = Field(..., ge=0, le=1)
    height: float = Field(..., ge=0, le=1)
    density: float = Field(..., ge=0, le=1)


class CrowdDensitySummary(CamelModel):
    overall: float = Field(..., ge=0.1, le=0.9)
    total_people_count: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=1)
    regions: List[DensityRegion] = Field(default_factory=list)


class AnalysisResults(CamelModel):
    crowd_density: CrowdDensitySummary
    incidents: List[Incident] = Field(default_factory=list)


# -------------------------------
# Responder request / response
# -------------------------------
class AnalyzeRequest(CamelModel):
    video_id: Optional[str] = Field(None, description="Record ID returned by /upload")


class AnalyzeResponse(CamelModel):
    success: bool = True
    message: str = "Video analysis complete"
    results: AnalysisResults


# -------------------------------
# Live feed
# -------------------------------
class LiveSnapshot(CamelModel):
    live_count: int = Field(..., ge=0)
    baseline_total: int
    trend: Literal["increasing", "decreasing"]
    people_detected: int
    incidents: List[Incident] = Field(default_factory=list)
    updated_at: str
