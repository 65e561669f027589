import threading
import time
from typing import Any


_lock = threading.Lock()
_metrics: dict[str, float] = {
    "sessions_created": 0.0,
    "quota_rejections": 0.0,
    "questions_generated": 0.0,
    "question_fallbacks": 0.0,
    "answers_evaluated": 0.0,
    "evaluation_fallbacks": 0.0,
    "sessions_completed": 0.0,
    "sessions_expired": 0.0,
    "runs_active": 0.0,
    "webhooks_processed": 0.0,
    "webhooks_rejected": 0.0,
    "llm_latency_total_ms": 0.0,
    "llm_latency_samples": 0.0,
}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def set_metric(name: str, value: float) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = max(0.0, float(value))


def observe_llm_latency_ms(value_ms: float) -> None:
    latency = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["llm_latency_total_ms"] = float(_metrics.get("llm_latency_total_ms", 0.0)) + latency
        _metrics["llm_latency_samples"] = float(_metrics.get("llm_latency_samples", 0.0)) + 1.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    latency_samples = max(1.0, float(data.get("llm_latency_samples") or 0.0))

    payload: dict[str, Any] = {
        "generated_at": time.time(),
        "avg_llm_latency_ms": round(float(data.get("llm_latency_total_ms") or 0.0) / latency_samples, 2),
    }
    for key, value in data.items():
        if key == "llm_latency_total_ms":
            payload[key] = float(value or 0.0)
            continue
        payload[key] = int(value or 0.0)

    if extra:
        payload.update(extra)
    return payload
