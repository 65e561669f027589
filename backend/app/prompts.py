# ----------- Question Generation Prompt -----------

BEHAVIORAL_FOCUS = """
For behavioral questions, focus on:
- Leadership and teamwork
- Problem-solving under pressure
- Risk management mindset
- Communication skills
- Adaptability in fast-paced environments
"""

TECHNICAL_FOCUS = """
For technical questions, focus on:
- Mathematical concepts (probability, statistics, calculus)
- Programming and algorithms
- Financial markets knowledge
- Risk management
- Data analysis and modeling
"""


def build_question_prompt(role: str, round_type: str, difficulty: str, count: int) -> str:
    return f"""
You are an expert interviewer for quantitative finance roles. Generate {count} {difficulty} {round_type} interview questions for a {role} position.
{BEHAVIORAL_FOCUS}
{TECHNICAL_FOCUS}
Return ONLY a valid JSON array of objects with this exact structure:
[
  {{
    "question": "The interview question",
    "category": "The specific category/topic",
    "expectedPoints": ["Key point 1", "Key point 2", "Key point 3"]
  }}
]

Generate {count} questions for {role} {round_type} interview at {difficulty} level.
"""


# ----------- Answer Evaluation Prompt -----------

def build_evaluation_prompt(
    question: str,
    answer: str,
    role: str,
    round_type: str,
    difficulty: str,
    expected_points: list[str] | None = None,
) -> str:
    expected = ", ".join(expected_points or []) or "Not provided"
    return f"""
You are an expert interviewer evaluating answers for quantitative finance roles.

Evaluate this {round_type} interview answer for a {role} position at {difficulty} level.

Question: {question}
Answer: {answer}
Expected key points: {expected}

Provide a score from 0-10 and detailed feedback. Consider:
- Technical accuracy and depth
- Communication clarity
- Relevant experience demonstration
- Problem-solving approach
- Industry knowledge

Return ONLY a valid JSON object with this exact structure:
{{
  "score": 8,
  "feedback": "Detailed feedback paragraph",
  "strengths": ["Strength 1", "Strength 2"],
  "improvements": ["Improvement 1", "Improvement 2"]
}}

Please evaluate this answer.
"""
