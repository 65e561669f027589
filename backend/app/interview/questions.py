import json
import logging
import re
import time

from app.prompts import build_question_prompt
from app.system_metrics import increment_metric, observe_llm_latency_ms
from core.logger import log_event

logger = logging.getLogger("app.interview.questions")

MAX_QUESTION_COUNT = 20


# ---------- STATIC FALLBACK QUESTIONS ----------

FALLBACK_QUESTIONS = {
    "trader": {
        "behavioral": [
            {
                "question": "Describe a time when you had to make a quick decision under pressure in a trading environment.",
                "category": "Decision Making",
                "expectedPoints": ["Quick analysis", "Risk assessment", "Clear reasoning"],
            },
            {
                "question": "How do you handle disagreements with colleagues about trading strategies?",
                "category": "Teamwork",
                "expectedPoints": ["Active listening", "Data-driven discussion", "Compromise"],
            },
        ],
        "technical": [
            {
                "question": "Explain the concept of Value at Risk (VaR) and its limitations.",
                "category": "Risk Management",
                "expectedPoints": ["Statistical measure", "Confidence intervals", "Model limitations"],
            },
            {
                "question": "How would you implement a pairs trading strategy?",
                "category": "Trading Strategies",
                "expectedPoints": ["Cointegration", "Mean reversion", "Risk controls"],
            },
        ],
    },
    "researcher": {
        "behavioral": [
            {
                "question": "Describe your approach to conducting quantitative research.",
                "category": "Research Methodology",
                "expectedPoints": ["Hypothesis formation", "Data analysis", "Validation"],
            },
            {
                "question": "How do you handle conflicting research results?",
                "category": "Problem Solving",
                "expectedPoints": ["Data verification", "Methodology review", "Peer consultation"],
            },
        ],
        "technical": [
            {
                "question": "Explain the difference between Type I and Type II errors in statistical testing.",
                "category": "Statistics",
                "expectedPoints": ["False positive", "False negative", "Power analysis"],
            },
            {
                "question": "How would you test for stationarity in a time series?",
                "category": "Time Series Analysis",
                "expectedPoints": ["ADF test", "KPSS test", "Visual inspection"],
            },
        ],
    },
    "analyst": {
        "behavioral": [
            {
                "question": "How do you communicate complex quantitative findings to non-technical stakeholders?",
                "category": "Communication",
                "expectedPoints": ["Simplification", "Visual aids", "Business impact"],
            },
            {
                "question": "Describe a time when your analysis led to a significant business decision.",
                "category": "Impact",
                "expectedPoints": ["Clear methodology", "Actionable insights", "Measurable results"],
            },
        ],
        "technical": [
            {
                "question": "Walk me through building a discounted cash flow model.",
                "category": "Financial Modeling",
                "expectedPoints": ["Cash flow projections", "Discount rate", "Terminal value"],
            },
            {
                "question": "How would you analyze the performance of a portfolio?",
                "category": "Portfolio Analysis",
                "expectedPoints": ["Risk-adjusted returns", "Benchmarking", "Attribution analysis"],
            },
        ],
    },
}


def _clamp_count(count) -> int:
    try:
        return max(1, min(MAX_QUESTION_COUNT, int(count)))
    except (TypeError, ValueError):
        return 5


def fallback_bank(role: str, round_type: str) -> list[dict]:
    by_role = FALLBACK_QUESTIONS.get(str(role or ""))
    if not by_role:
        return FALLBACK_QUESTIONS["trader"]["behavioral"]
    if round_type == "mixed":
        return list(by_role.get("behavioral", [])) + list(by_role.get("technical", []))
    return by_role.get(str(round_type or "")) or FALLBACK_QUESTIONS["trader"]["behavioral"]


def fallback_questions(role: str, round_type: str, count: int = 5) -> list[dict]:
    """Exactly `count` canned questions, cycling through the bank by index."""
    bank = fallback_bank(role, round_type)
    total = _clamp_count(count)
    return [dict(bank[i % len(bank)]) for i in range(total)]


def _extract_json_list(text: str) -> list | None:
    text = (text or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
        if isinstance(parsed, list):
            return parsed
    except Exception:
        pass

    match = re.search(r"\[[\s\S]*\]", text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except Exception:
        return None
    return parsed if isinstance(parsed, list) else None


def _normalize_question(item) -> dict | None:
    if not isinstance(item, dict):
        return None
    question = str(item.get("question") or "").strip()
    if not question:
        return None
    points = item.get("expectedPoints") or item.get("expected_points") or []
    if not isinstance(points, list):
        points = [points]
    return {
        "question": question,
        "category": str(item.get("category") or "General").strip() or "General",
        "expectedPoints": [str(point).strip() for point in points if str(point or "").strip()],
    }


def generate_questions(llm, role: str, round_type: str, difficulty: str, count: int = 5) -> list[dict]:
    total = _clamp_count(count)
    prompt = build_question_prompt(role, round_type, difficulty, total)

    started = time.perf_counter()
    try:
        content = llm.generate(prompt, temperature=0.7)
        observe_llm_latency_ms((time.perf_counter() - started) * 1000.0)
        parsed = _extract_json_list(content)
        if parsed is None:
            raise ValueError("No JSON array found in response")
        questions = [q for q in (_normalize_question(item) for item in parsed) if q]
        if not questions:
            raise ValueError("Model returned no usable questions")
    except Exception as exc:
        logger.warning("generate_questions fallback | role=%s round_type=%s err=%s", role, round_type, exc)
        increment_metric("question_fallbacks")
        questions = fallback_questions(role, round_type, total)
        log_event("questions", "fallback_used", "", role=role, round_type=round_type, count=len(questions))

    questions = questions[:total]
    if len(questions) < total:
        # short model output is topped up from the canned bank by position
        missing = total - len(questions)
        questions.extend(fallback_questions(role, round_type, total)[len(questions):])
        log_event("questions", "fallback_filled", "", role=role, round_type=round_type, filled=missing)
    increment_metric("questions_generated", len(questions))
    return questions
