import threading
import time
from typing import Any


_lock = threading.Lock()
_COUNTERS = (
    "sessions_created",
    "sessions_deleted",
    "sessions_expired",
    "chat_turns",
    "interviews_concluded",
    "gateway_failures",
    "reports_generated",
    "report_fallbacks",
)
_metrics: dict[str, float] = {name: 0.0 for name in _COUNTERS}
_metrics.update({
    "gateway_latency_total_ms": 0.0,
    "gateway_latency_samples": 0.0,
})


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def observe_gateway_latency_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["gateway_latency_total_ms"] = float(_metrics.get("gateway_latency_total_ms", 0.0)) + latency
        _metrics["gateway_latency_samples"] = float(_metrics.get("gateway_latency_samples", 0.0)) + 1.0


def reset_metrics() -> None:
    with _lock:
        for key in list(_metrics.keys()):
            _metrics[key] = 0.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    latency_samples = max(1.0, float(data.get("gateway_latency_samples") or 0.0))

    payload: dict[str, Any] = {"generated_at": time.time()}
    for name in _COUNTERS:
        payload[name] = int(data.get(name) or 0.0)
    payload["gateway_latency_samples"] = int(data.get("gateway_latency_samples") or 0.0)
    payload["avg_gateway_latency_ms"] = round(float(data.get("gateway_latency_total_ms") or 0.0) / latency_samples, 2)

    if extra:
        payload.update(extra)
    return payload
