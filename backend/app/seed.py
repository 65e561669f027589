import argparse
import json
import logging

from app.db.models import QA, Session, User, utc_now
from app.db.store import build_datastore

logger = logging.getLogger("app.seed")

SAMPLE_EMAILS = [
    "john.doe@example.com",
    "jane.smith@example.com",
    "alex.johnson@example.com",
]

SAMPLE_SESSIONS = [
    {"role": "trader", "round_type": "behavioral", "difficulty": "medium", "score": 8},
    {"role": "researcher", "round_type": "technical", "difficulty": "hard", "score": 7},
]

SAMPLE_QAS = [
    {
        "question": "Describe a time when you had to make a quick decision under pressure.",
        "answer": "During a market volatility spike, I quickly assessed our risk exposure...",
        "ai_score": 8,
        "ai_feedback": "Excellent response with clear decision-making process.",
    },
    {
        "question": "Explain the concept of Value at Risk (VaR).",
        "answer": "VaR is a statistical measure that quantifies potential portfolio losses...",
        "ai_score": 9,
        "ai_feedback": "Outstanding technical explanation with good depth.",
    },
]


def seed(store, emails: list[str] | None = None) -> dict:
    """Insert sample users, each with two completed sessions of two answers."""
    created = {"users": 0, "sessions": 0, "qas": 0}
    for email in emails or SAMPLE_EMAILS:
        if store.get_user_by_email(email):
            logger.info("seed skip existing user | email=%s", email)
            continue
        user = store.create_user(User(email=email.lower()))
        created["users"] += 1

        for template in SAMPLE_SESSIONS:
            now = utc_now()
            session = store.create_session(
                Session(
                    user_id=user.id,
                    role=template["role"],
                    round_type=template["round_type"],
                    difficulty=template["difficulty"],
                    started_at=now,
                    ended_at=now,
                    score=template["score"],
                    feedback={"completed": True, "averageScore": template["score"]},
                )
            )
            created["sessions"] += 1

            for qa in SAMPLE_QAS:
                store.add_qa(QA(session_id=session.id, **qa))
                created["qas"] += 1
    return created


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed sample users, sessions and answers")
    parser.add_argument("--backend", default=None, help="datastore backend (memory or supabase)")
    parser.add_argument("--email", action="append", dest="emails", help="seed this email instead of the samples")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    store = build_datastore(args.backend)
    created = seed(store, args.emails)
    print(json.dumps(created, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
