# crowdwatch/routes/dashboard.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Query

from crowdwatch.live_feed import feed
from crowdwatch.models import AreaStatistic, CrowdDensitySample, Incident, LiveSnapshot
from crowdwatch.synthetic import (
    generate_area_stats,
    generate_hourly_density_data,
    generate_recent_incidents,
    timeframe_slice,
)

router = APIRouter()


@router.get("/areas", response_model=List[AreaStatistic], summary="Occupancy per monitored area")
async def get_area_stats():
    return generate_area_stats()


@router.get("/density", response_model=List[CrowdDensitySample], summary="Hourly crowd density series")
async def get_density(
    hours: int = Query(24, ge=0, le=24 * 30, description="Hours of history (returns hours+1 samples)"),
    timeframe: Optional[Literal["6h", "12h", "24h"]] = Query(None, description="Dashboard tab; overrides hours"),
):
    if timeframe:
        # tabs are windows onto one 24h series
        return timeframe_slice(generate_hourly_density_data(24), timeframe)
    return generate_hourly_density_data(hours)


@router.get("/incidents", response_model=List[Incident], summary="Recent incidents")
async def get_incidents(count: int = Query(7, ge=0, le=100)):
    return generate_recent_incidents(count)


@router.get("/live", response_model=LiveSnapshot, summary="Current live feed snapshot")
async def get_live():
    return feed.snapshot


@router.get("/live/incidents", response_model=List[Incident], summary="Live incident feed")
async def get_live_incidents(status: Literal["all", "active", "resolved"] = "all"):
    return feed.incidents(status)
