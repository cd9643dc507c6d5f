import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from crowdwatch.exceptions import ValidationError
from crowdwatch.synthetic import (
    generate_area_stats,
    generate_hourly_density_data,
    generate_recent_incidents,
    round_half_up,
    timeframe_slice,
    to_iso,
)


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


# -------------------------------
# Area statistics
# -------------------------------
def test_area_stats_names_and_capacities():
    stats = generate_area_stats()
    assert [a.name for a in stats] == ["Main Entrance", "West Wing", "East Wing", "North Plaza", "Food Court"]
    assert [a.capacity for a in stats] == [200, 150, 100, 250, 300]


def test_area_density_is_derived(rng):
    for _ in range(200):
        for area in generate_area_stats(rng=rng):
            assert area.density == round_half_up(area.current_count / area.capacity * 100)
            assert area.incidents in (0, 1)


def test_main_entrance_count_range(rng):
    for _ in range(1000):
        main = generate_area_stats(rng=rng)[0]
        assert 100 <= main.current_count <= 149


def test_east_wing_never_flags_incident(rng):
    assert all(generate_area_stats(rng=rng)[2].incidents == 0 for _ in range(500))


def test_area_incident_rate_roughly_matches(rng):
    flagged = sum(generate_area_stats(rng=rng)[0].incidents for _ in range(4000))
    assert 0.25 < flagged / 4000 < 0.35


def test_area_stats_serialize_camel_case():
    dumped = generate_area_stats()[0].model_dump(by_alias=True)
    assert set(dumped) == {"id", "name", "currentCount", "capacity", "density", "incidents"}


# -------------------------------
# Hourly density series
# -------------------------------
@pytest.mark.parametrize("hours", [0, 1, 6, 24, 48])
def test_hourly_series_length_and_spacing(hours, rng):
    now = datetime.now(timezone.utc)
    samples = generate_hourly_density_data(hours, now=now, rng=rng)
    assert len(samples) == hours + 1

    stamps = [_parse(s.timestamp) for s in samples]
    for earlier, later in zip(stamps, stamps[1:]):
        assert later - earlier == timedelta(hours=1)
    assert abs(stamps[-1] - now) < timedelta(milliseconds=1)


def test_hourly_series_ends_now_by_default():
    before = datetime.now(timezone.utc) - timedelta(milliseconds=1)
    samples = generate_hourly_density_data(3)
    after = datetime.now(timezone.utc)
    assert before <= _parse(samples[-1].timestamp) <= after


def test_hourly_values_follow_day_cycle_model(rng):
    samples = generate_hourly_density_data(24, rng=rng)
    for i, sample in zip(range(24, -1, -1), samples):
        slot = (24 - i) % 24
        if 10 <= slot <= 18:
            m = 1.5
        elif 19 <= slot <= 22:
            m = 1.2
        else:
            m = 0.7
        assert round_half_up(400 * m * 0.8) <= sample.total <= round_half_up(400 * m * 1.2)
        assert round_half_up(40 * m * 0.8) <= sample.density <= round_half_up(40 * m * 1.2)


def test_hourly_model_exact_with_fixed_jitter():
    class Fixed(random.Random):
        def random(self):
            return 0.5  # jitter 1.0

    samples = generate_hourly_density_data(24, rng=Fixed())
    # i = 24 -> slot 0 (night), i = 12 -> slot 12 (day), i = 4 -> slot 20 (evening)
    assert (samples[0].total, samples[0].density) == (280, 28)
    assert (samples[12].total, samples[12].density) == (600, 60)
    assert (samples[20].total, samples[20].density) == (480, 48)


def test_hourly_negative_hours_rejected():
    with pytest.raises(ValidationError):
        generate_hourly_density_data(-1)


def test_timeframe_slice():
    samples = generate_hourly_density_data(24)
    assert len(timeframe_slice(samples, "6h")) == 7
    assert len(timeframe_slice(samples, "12h")) == 13
    assert timeframe_slice(samples, "24h") == samples
    with pytest.raises(ValidationError):
        timeframe_slice(samples, "3d")


# -------------------------------
# Recent incidents
# -------------------------------
def test_recent_incidents_fields(rng):
    now = datetime.now(timezone.utc)
    incidents = generate_recent_incidents(200, now=now, rng=rng)
    assert len(incidents) == 200
    assert len({i.id for i in incidents}) == 200

    for inc in incidents:
        assert inc.status in {"active", "resolved"}
        assert inc.severity in {"low", "medium", "high"}
        assert inc.description.startswith("Potential incident detected in the ")
        ts = _parse(inc.timestamp)
        assert now - timedelta(milliseconds=3_600_000) < ts <= now


def test_description_location_drawn_independently(rng):
    incidents = generate_recent_incidents(300, rng=rng)
    mismatched = [i for i in incidents if not i.description.endswith(i.location)]
    assert mismatched


def test_zero_incidents():
    assert generate_recent_incidents(0) == []


def test_negative_incident_count_rejected():
    with pytest.raises(ValidationError):
        generate_recent_incidents(-3)


def test_to_iso_format():
    dt = datetime(2026, 10, 19, 12, 30, 5, 123456, tzinfo=timezone.utc)
    assert to_iso(dt) == "2026-10-19T12:30:05.123Z"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(math.pi) == 3
