# crowdwatch/routes/metrics_store.py
from threading import RLock
from collections import deque
from datetime import datetime, timezone

ROLLING_WINDOW = 100  # how many recent calls to average over
CHANNELS = ("analysis", "upload")


def _empty_channel():
    return {"calls": 0, "errors": 0, "total_ms": 0.0, "latencies": deque(maxlen=ROLLING_WINDOW),
            "last_output": None, "last_request": None}


class MetricsStore:
    def __init__(self, channels=CHANNELS):
        self._lock = RLock()
        self._data = {name: _empty_channel() for name in channels}

    def record(self, channel: str, ms: float, last_output=None, ok: bool = True):
        with self._lock:
            m = self._data.setdefault(channel, _empty_channel())
            m["calls"] += 1
            if not ok:
                m["errors"] += 1
            m["total_ms"] += ms
            m["last_output"] = last_output
            m["latencies"].append(ms)
            m["last_request"] = datetime.now(timezone.utc)

    def snapshot(self):
        with self._lock:
            out = {}
            for k, v in self._data.items():
                # rolling average over recent N; fallback to overall avg
                if v["latencies"]:
                    avg = sum(v["latencies"]) / len(v["latencies"])
                else:
                    avg = (v["total_ms"] / v["calls"]) if v["calls"] else 0.0
                out[k] = {
                    "calls": v["calls"],
                    "errors": v["errors"],
                    "avg_latency_ms": round(avg, 2),
                    "last_output": v["last_output"],
                    "last_request": v["last_request"].isoformat() if v["last_request"] else None,
                }
            return out

    def reset(self):
        with self._lock:
            for name in list(self._data):
                self._data[name] = _empty_channel()


metrics = MetricsStore()
