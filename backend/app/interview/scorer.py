import math


def _safe_float(value, default: float | None = None) -> float | None:
    try:
        return float(value)
    except Exception:
        return default


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def aggregate_score(scores) -> int:
    """
    Rounded mean of the given 0..10 scores.
    Missing (None) scores are left out; no scores at all gives 0.
    """
    present = [s for s in (_safe_float(item) for item in list(scores or [])) if s is not None]
    if not present:
        return 0
    mean = sum(max(0.0, min(10.0, s)) for s in present) / len(present)
    return round_half_up(mean)


def performance_band(score: float) -> str:
    value = _safe_float(score, 0.0)
    if value >= 8:
        return "Excellent"
    if value >= 6:
        return "Good"
    return "Needs Improvement"


def summarize_results(qas) -> dict:
    scores = [qa.ai_score for qa in qas]
    scored = [float(s) for s in scores if s is not None]
    overall = aggregate_score(scores)
    return {
        "score": overall,
        "band": performance_band(overall),
        "answered": len(qas),
        "strong_answers": sum(1 for s in scored if s >= 7),
        "mean_score": round(sum(scored) / len(scored), 2) if scored else 0.0,
        "answers": [
            {
                "question": qa.question,
                "answer": qa.answer,
                "score": qa.ai_score,
                "feedback": qa.ai_feedback,
            }
            for qa in qas
        ],
    }
