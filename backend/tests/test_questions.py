from app.interview.questions import (
    FALLBACK_QUESTIONS,
    MAX_QUESTION_COUNT,
    fallback_bank,
    fallback_questions,
    generate_questions,
)
from app.system_metrics import get_metrics_snapshot


def test_fallback_cycles_bank_by_index():
    questions = fallback_questions("researcher", "technical", 5)
    bank = FALLBACK_QUESTIONS["researcher"]["technical"]

    assert len(questions) == 5
    assert [q["question"] for q in questions] == [
        bank[0]["question"],
        bank[1]["question"],
        bank[0]["question"],
        bank[1]["question"],
        bank[0]["question"],
    ]


def test_mixed_round_uses_behavioral_then_technical():
    bank = fallback_bank("analyst", "mixed")
    assert bank[:2] == FALLBACK_QUESTIONS["analyst"]["behavioral"]
    assert bank[2:] == FALLBACK_QUESTIONS["analyst"]["technical"]

    questions = fallback_questions("analyst", "mixed", 5)
    assert questions[2]["question"] == FALLBACK_QUESTIONS["analyst"]["technical"][0]["question"]
    assert questions[4]["question"] == FALLBACK_QUESTIONS["analyst"]["behavioral"][0]["question"]


def test_unknown_role_falls_back_to_trader_behavioral():
    assert fallback_bank("quant-dev", "technical") == FALLBACK_QUESTIONS["trader"]["behavioral"]


def test_generate_questions_uses_model_output(scripted_model):
    scripted_model.push(
        [
            {"question": "What is gamma?", "category": "Options", "expectedPoints": ["Convexity"]},
            {"question": "Price a coin flip game.", "category": "Probability", "expectedPoints": ["Expectation"]},
        ]
    )

    questions = generate_questions(scripted_model, "trader", "technical", "hard", count=2)

    assert [q["question"] for q in questions] == ["What is gamma?", "Price a coin flip game."]
    assert questions[0]["expectedPoints"] == ["Convexity"]
    assert "2 hard technical interview questions for a trader position" in scripted_model.prompts[0]


def test_generate_questions_extracts_array_from_prose(scripted_model):
    scripted_model.push(
        'Here you go:\n```json\n[{"question": "Why this desk?", "category": "Motivation"}]\n```'
    )

    questions = generate_questions(scripted_model, "trader", "behavioral", "easy", count=1)

    assert questions == [{"question": "Why this desk?", "category": "Motivation", "expectedPoints": []}]


def test_generate_questions_truncates_to_count(scripted_model):
    scripted_model.push([{"question": f"Q{i}", "category": "General"} for i in range(7)])

    questions = generate_questions(scripted_model, "analyst", "technical", "medium", count=3)

    assert [q["question"] for q in questions] == ["Q0", "Q1", "Q2"]


def test_short_model_output_is_topped_up_from_bank(scripted_model):
    scripted_model.push([{"question": "What is theta?", "category": "Options"}])

    questions = generate_questions(scripted_model, "trader", "technical", "medium", count=5)
    bank = fallback_questions("trader", "technical", 5)

    assert len(questions) == 5
    assert questions[0]["question"] == "What is theta?"
    assert questions[1:] == bank[1:]


def test_generate_questions_falls_back_on_model_failure(failing_model):
    before = get_metrics_snapshot()["question_fallbacks"]

    questions = generate_questions(failing_model, "trader", "behavioral", "medium", count=5)

    assert len(questions) == 5
    assert questions == fallback_questions("trader", "behavioral", 5)
    assert get_metrics_snapshot()["question_fallbacks"] == before + 1


def test_generate_questions_falls_back_on_unparseable_output(scripted_model):
    scripted_model.push("I cannot help with that.")

    questions = generate_questions(scripted_model, "researcher", "behavioral", "easy", count=3)

    assert questions == fallback_questions("researcher", "behavioral", 3)


def test_generate_questions_falls_back_when_items_have_no_question(scripted_model):
    scripted_model.push([{"category": "Empty"}, "not-a-dict"])

    questions = generate_questions(scripted_model, "analyst", "behavioral", "easy", count=2)

    assert questions == fallback_questions("analyst", "behavioral", 2)


def test_count_is_clamped():
    assert len(fallback_questions("trader", "technical", 0)) == 1
    assert len(fallback_questions("trader", "technical", 500)) == MAX_QUESTION_COUNT
