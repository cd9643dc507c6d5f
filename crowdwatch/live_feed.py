# crowdwatch/live_feed.py
"""
Live dashboard feed.

Three periodic ticks replace an immutable LiveSnapshot: a random-walk live
people count, an incident feed that occasionally gains a new incident, and
the "people detected" ticker of the video panel.
"""
import math
import random
from typing import List, Optional

from crowdwatch.config.settings import (
    INCIDENT_FEED_INTERVAL_S,
    LIVE_COUNT_INTERVAL_S,
    PEOPLE_DETECTED_INTERVAL_S,
)
from crowdwatch.logger import setup_logger
from crowdwatch.models import Incident, LiveSnapshot
from crowdwatch.scheduling import PeriodicTask
from crowdwatch.synthetic import generate_hourly_density_data, generate_recent_incidents, to_iso, utcnow

logger = setup_logger(__name__)

INITIAL_INCIDENTS = 7
MAX_INCIDENTS = 10
NEW_INCIDENT_THRESHOLD = 0.7  # 30% chance per tick


def _trend(live_count: int, baseline_total: int) -> str:
    return "increasing" if live_count > baseline_total else "decreasing"


class LiveFeed:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._tasks: List[PeriodicTask] = []

        baseline = generate_hourly_density_data(24, rng=self.rng)[-1].total
        self._snapshot = LiveSnapshot(
            live_count=baseline,
            baseline_total=baseline,
            trend=_trend(baseline, baseline),
            people_detected=self._draw_people_detected(),
            incidents=generate_recent_incidents(INITIAL_INCIDENTS, rng=self.rng),
            updated_at=to_iso(utcnow()),
        )

    @property
    def snapshot(self) -> LiveSnapshot:
        return self._snapshot

    def incidents(self, status: str = "all") -> List[Incident]:
        items = self._snapshot.incidents
        if status == "all":
            return list(items)
        return [i for i in items if i.status == status]

    def _publish(self, **changes) -> LiveSnapshot:
        self._snapshot = self._snapshot.model_copy(update={**changes, "updated_at": to_iso(utcnow())})
        return self._snapshot

    def _draw_people_detected(self) -> int:
        return math.floor(self.rng.random() * 50) + 150

    # -------------------------------
    # Ticks
    # -------------------------------
    def tick_live_count(self) -> LiveSnapshot:
        snap = self._snapshot
        count = max(0, snap.live_count + math.floor(self.rng.random() * 20) - 10)
        return self._publish(live_count=count, trend=_trend(count, snap.baseline_total))

    def tick_incidents(self) -> LiveSnapshot:
        if self.rng.random() <= NEW_INCIDENT_THRESHOLD:
            return self._snapshot
        new_incident = generate_recent_incidents(1, rng=self.rng)[0]
        incidents = [new_incident, *self._snapshot.incidents][:MAX_INCIDENTS]
        logger.info(f"New {new_incident.severity} incident in feed: {new_incident.type}")
        return self._publish(incidents=incidents)

    def tick_people_detected(self) -> LiveSnapshot:
        return self._publish(people_detected=self._draw_people_detected())

    # -------------------------------
    # Scheduling
    # -------------------------------
    def start(
        self,
        live_count_s: float = LIVE_COUNT_INTERVAL_S,
        incidents_s: float = INCIDENT_FEED_INTERVAL_S,
        people_s: float = PEOPLE_DETECTED_INTERVAL_S,
    ) -> None:
        if self._tasks:
            return
        self._tasks = [
            PeriodicTask("live-count", live_count_s, self.tick_live_count),
            PeriodicTask("incident-feed", incidents_s, self.tick_incidents),
            PeriodicTask("people-detected", people_s, self.tick_people_detected),
        ]
        for task in self._tasks:
            task.start()
        logger.info("Live feed started")

    async def stop(self) -> None:
        for task in self._tasks:
            await task.cancel()
        self._tasks = []
        logger.info("Live feed stopped")

    @property
    def running(self) -> bool:
        return any(t.running for t in self._tasks)


feed = LiveFeed()
