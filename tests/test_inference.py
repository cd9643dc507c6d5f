import json
import random
from unittest.mock import patch

import httpx
import pytest

from crowdwatch.exceptions import InferenceError
from crowdwatch.inference import (
    RandomCrowdAnalyzer,
    RemoteCrowdAnalyzer,
    build_analyzer,
)

VIDEO = {"id": "abc", "file_path": "tester/abc.mp4"}


def test_crowd_density_summary_shape():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(7))
    for _ in range(200):
        density = analyzer.analyze(VIDEO).crowd_density
        assert 0.1 <= density.overall <= 0.9
        assert 50 <= density.total_people_count <= 199
        assert density.confidence == 0.92
        assert [(r.x, r.y, r.width, r.height) for r in density.regions] == [
            (0.1, 0.2, 0.3, 0.4),
            (0.5, 0.6, 0.2, 0.3),
            (0.7, 0.1, 0.25, 0.25),
        ]


def test_region_densities_rerandomized_each_call():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(7))
    first = [r.density for r in analyzer.analyze(VIDEO).crowd_density.regions]
    second = [r.density for r in analyzer.analyze(VIDEO).crowd_density.regions]
    assert first != second


@pytest.mark.parametrize("overall, low, high", [
    (0.85, 2, 4),
    (0.71, 2, 4),
    (0.7, 1, 2),
    (0.55, 1, 2),
    (0.41, 1, 2),
    (0.4, 0, 1),
    (0.1, 0, 1),
])
def test_incident_count_tiers(overall, low, high):
    analyzer = RandomCrowdAnalyzer(rng=random.Random(11))
    counts = {len(analyzer.incidents_for(overall, 120)) for _ in range(300)}
    assert min(counts) >= low
    assert max(counts) <= high
    assert counts == set(range(low, high + 1))


def test_high_tier_severity_mix():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(3))
    severities = [i.severity for _ in range(2000) for i in analyzer.incidents_for(0.85, 100)]
    share = {s: severities.count(s) / len(severities) for s in ("high", "medium", "low")}
    assert 0.35 < share["high"] < 0.45
    # nested draws: medium = 0.6 * 0.6, low = 0.6 * 0.4
    assert 0.31 < share["medium"] < 0.41
    assert 0.19 < share["low"] < 0.29


def test_medium_tier_never_high():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(5))
    severities = {i.severity for _ in range(500) for i in analyzer.incidents_for(0.5, 100)}
    assert severities == {"medium", "low"}


def _active_share(incidents):
    return sum(i.status == "active" for i in incidents) / len(incidents)


def test_medium_tier_severity_mix():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(6))
    severities = [i.severity for _ in range(4000) for i in analyzer.incidents_for(0.55, 100)]
    assert 0.26 < severities.count("medium") / len(severities) < 0.34
    assert 0.66 < severities.count("low") / len(severities) < 0.74


@pytest.mark.parametrize("overall, low, high", [
    (0.85, 0.65, 0.75),
    (0.55, 0.45, 0.55),
    (0.2, 0.44, 0.56),
])
def test_active_status_share_per_tier(overall, low, high):
    analyzer = RandomCrowdAnalyzer(rng=random.Random(12))
    incidents = [i for _ in range(4000) for i in analyzer.incidents_for(overall, 100)]
    assert low < _active_share(incidents) < high


def test_low_tier_incident_is_fixed():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(9))
    incidents = [i for _ in range(300) for i in analyzer.incidents_for(0.2, 64)]
    assert incidents
    for inc in incidents:
        assert inc.type == "unusual activity"
        assert inc.severity == "low"
        assert inc.location == "south perimeter"
        assert inc.description == "Minor concern detected with 64 people in low-density area"


def test_incident_ids_are_unique():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(1))
    ids = [i.id for _ in range(100) for i in analyzer.incidents_for(0.9, 100)]
    assert len(ids) == len(set(ids))


def test_forced_overall_drives_incidents():
    analyzer = RandomCrowdAnalyzer(rng=random.Random(2))
    with patch.object(analyzer, "draw_overall", return_value=0.85):
        results = analyzer.analyze(VIDEO)
    assert results.crowd_density.overall == 0.85
    assert 2 <= len(results.incidents) <= 4
    people = results.crowd_density.total_people_count
    for inc in results.incidents:
        assert inc.description.endswith(f"with {people} people in view")


# -------------------------------
# Remote provider
# -------------------------------
def _remote_reply():
    return {
        "crowdDensity": {
            "overall": 0.5,
            "totalPeopleCount": 88,
            "confidence": 0.8,
            "regions": [{"x": 0.1, "y": 0.1, "width": 0.5, "height": 0.5, "density": 0.4}],
        },
        "incidents": [],
    }


def test_remote_analyzer_posts_record():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_remote_reply())

    analyzer = RemoteCrowdAnalyzer(base_url="http://model.local/", transport=httpx.MockTransport(handler))
    results = analyzer.analyze(VIDEO)

    assert seen["url"] == "http://model.local/analyze"
    assert seen["body"] == {"video_id": "abc", "file_path": "tester/abc.mp4"}
    assert results.crowd_density.total_people_count == 88


def test_remote_analyzer_service_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(InferenceError, match="busy"):
        RemoteCrowdAnalyzer(base_url="http://model.local", transport=transport).analyze(VIDEO)


def test_remote_analyzer_invalid_reply():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"nope": True}))
    with pytest.raises(InferenceError):
        RemoteCrowdAnalyzer(base_url="http://model.local", transport=transport).analyze(VIDEO)


def test_remote_analyzer_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(InferenceError, match="unreachable"):
        RemoteCrowdAnalyzer(base_url="http://model.local", transport=httpx.MockTransport(handler)).analyze(VIDEO)


def test_build_analyzer():
    assert isinstance(build_analyzer("random"), RandomCrowdAnalyzer)
    assert isinstance(build_analyzer("remote"), RemoteCrowdAnalyzer)
    with pytest.raises(ValueError):
        build_analyzer("magic")
