import json
import logging
import math
import re
import time

from app.prompts import build_evaluation_prompt
from app.system_metrics import increment_metric, observe_llm_latency_ms

logger = logging.getLogger("app.interview.evaluator")

FALLBACK_STRENGTHS = ["Clear communication", "Relevant content"]
FALLBACK_IMPROVEMENTS = ["Add more specific examples", "Elaborate on key concepts"]


def _clamp_score(value, default: int = 0) -> int:
    try:
        return max(0, min(10, int(round(float(value)))))
    except Exception:
        return default


def _string_list(value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(item).strip() for item in value if str(item or "").strip()]


def _normalize_eval(data: dict) -> dict:
    return {
        "score": _clamp_score(data.get("score"), 0),
        "feedback": str(data.get("feedback") or "Evaluation generated."),
        "strengths": _string_list(data.get("strengths")),
        "improvements": _string_list(data.get("improvements")),
    }


def _extract_json_dict(text: str) -> dict | None:
    text = (text or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except Exception:
        pass

    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text, re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except Exception:
            return None

    return None


def _mentions(answer: str, point: str) -> bool:
    words = [w for w in re.findall(r"[a-z0-9]+", point.lower()) if len(w) > 3]
    if not words:
        return False
    lowered = answer.lower()
    return any(word in lowered for word in words)


def heuristic_evaluation(answer: str, expected_points: list[str] | None = None) -> dict:
    """Deterministic 6..8 score used whenever the model is unavailable."""
    text = str(answer or "")
    score = 6
    detailed = len(text) > 100
    if detailed:
        score += 1

    points = _string_list(expected_points)
    if points:
        covered = sum(1 for point in points if _mentions(text, point))
        if covered * 2 >= len(points):
            score += 1

    detail_note = "Good detail provided." if detailed else "Consider providing more specific examples."
    return {
        "score": min(8, score),
        "feedback": (
            f"Your answer demonstrates understanding of the topic. {detail_note} "
            "Continue practicing to improve your responses."
        ),
        "strengths": list(FALLBACK_STRENGTHS),
        "improvements": list(FALLBACK_IMPROVEMENTS),
    }


def evaluate_answer(
    llm,
    question: str,
    answer: str,
    role: str,
    round_type: str,
    difficulty: str,
    expected_points: list[str] | None = None,
) -> dict:
    prompt = build_evaluation_prompt(question, answer, role, round_type, difficulty, expected_points)

    started = time.perf_counter()
    try:
        content = llm.generate(prompt, temperature=0.3)
        observe_llm_latency_ms((time.perf_counter() - started) * 1000.0)
        parsed = _extract_json_dict(content)
        if parsed is None or parsed.get("score") is None:
            raise ValueError("No JSON object found in response")
        if not math.isfinite(float(parsed["score"])):
            raise ValueError(f"Non-numeric score: {parsed['score']!r}")
        result = _normalize_eval(parsed)
    except Exception as exc:
        logger.warning("evaluate_answer fallback | role=%s err=%s", role, exc)
        increment_metric("evaluation_fallbacks")
        result = heuristic_evaluation(answer, expected_points)

    increment_metric("answers_evaluated")
    return result
