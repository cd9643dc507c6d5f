# crowdwatch/synthetic.py
"""
Synthetic dashboard analytics.

Stand-ins for real crowd detection: every value below is drawn from a
uniform random source. All generators are pure apart from that source and
the clock, both of which can be passed in.
"""
import math
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from crowdwatch.exceptions import ValidationError
from crowdwatch.models import AreaStatistic, CrowdDensitySample, Incident

HOUR = timedelta(hours=1)
HOUR_MS = 3_600_000

# (id, name, base, range, capacity, incident probability)
AREAS = (
    ("1", "Main Entrance", 100, 50, 200, 0.30),
    ("2", "West Wing", 60, 40, 150, 0.20),
    ("3", "East Wing", 40, 30, 100, 0.0),
    ("4", "North Plaza", 120, 60, 250, 0.25),
    ("5", "Food Court", 150, 80, 300, 0.15),
)

BASE_TOTAL = 400
BASE_DENSITY = 40

INCIDENT_TYPES = ("overcrowding", "suspicious activity", "unusual behavior", "restricted area")
INCIDENT_LOCATIONS = ("north entrance", "main hall", "west corridor", "parking area", "south exit")
SEVERITY_LEVELS = ("low", "medium", "high")

TIMEFRAMES = {"6h": 6, "12h": 12, "24h": 24}


# -------------------------------
# Helpers
# -------------------------------
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def density_percent(current_count: int, capacity: int) -> int:
    return round_half_up(current_count / capacity * 100)


def day_cycle_multiplier(hour_slot: int) -> float:
    if 10 <= hour_slot <= 18:
        return 1.5  # busier during the day
    if 19 <= hour_slot <= 22:
        return 1.2  # evening
    return 0.7      # night / early morning


# -------------------------------
# Generators
# -------------------------------
def generate_area_stats(rng: Optional[random.Random] = None) -> List[AreaStatistic]:
    rng = rng or random
    stats = []
    for area_id, name, base, spread, capacity, p_incident in AREAS:
        current = math.floor(rng.random() * spread) + base
        incidents = 1 if p_incident and rng.random() > 1 - p_incident else 0
        stats.append(AreaStatistic(
            id=area_id,
            name=name,
            current_count=current,
            capacity=capacity,
            density=density_percent(current, capacity),
            incidents=incidents,
        ))
    return stats


def generate_hourly_density_data(
    hours: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[CrowdDensitySample]:
    """One sample per hour for the last `hours` hours, oldest first, ending at now."""
    if hours < 0:
        raise ValidationError("hours must be >= 0")
    rng = rng or random
    now = now or utcnow()

    samples = []
    for i in range(hours, -1, -1):
        hour_slot = (24 - i) % 24
        multiplier = day_cycle_multiplier(hour_slot)
        jitter = 0.8 + rng.random() * 0.4  # 0.8 to 1.2

        samples.append(CrowdDensitySample(
            timestamp=to_iso(now - i * HOUR),
            density=round_half_up(BASE_DENSITY * multiplier * jitter),
            total=round_half_up(BASE_TOTAL * multiplier * jitter),
        ))
    return samples


def generate_recent_incidents(
    count: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[Incident]:
    if count < 0:
        raise ValidationError("count must be >= 0")
    rng = rng or random
    now = now or utcnow()

    incidents = []
    for _ in range(count):
        age_ms = math.floor(rng.random() * HOUR_MS)
        incidents.append(Incident(
            id=str(uuid.uuid4()),
            type=rng.choice(INCIDENT_TYPES),
            severity=rng.choice(SEVERITY_LEVELS),
            status="active" if rng.random() > 0.5 else "resolved",
            location=rng.choice(INCIDENT_LOCATIONS),
            # drawn independently of `location`
            description=f"Potential incident detected in the {rng.choice(INCIDENT_LOCATIONS)}",
            timestamp=to_iso(now - timedelta(milliseconds=age_ms)),
        ))
    return incidents


def timeframe_slice(samples: Sequence[CrowdDensitySample], timeframe: str) -> List[CrowdDensitySample]:
    """Last hours+1 samples for a dashboard tab ("6h", "12h", "24h")."""
    if timeframe not in TIMEFRAMES:
        raise ValidationError(f"unknown timeframe: {timeframe}")
    return list(samples[-(TIMEFRAMES[timeframe] + 1):])
