from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.state import Difficulty, Role, RoundType


class RpcModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class InterviewChoice(RpcModel):
    role: Role
    round_type: RoundType = Field(alias="roundType")
    difficulty: Difficulty


class GenerateQuestionsRequest(InterviewChoice):
    count: int = Field(default=5, ge=1, le=20)


class GeneratedQuestion(BaseModel):
    question: str
    category: str
    expectedPoints: list[str]


class EvaluateAnswerRequest(InterviewChoice):
    question: str = Field(min_length=1)
    answer: str
    expected_points: list[str] | None = Field(default=None, alias="expectedPoints")


class EvaluationResult(BaseModel):
    score: int = Field(ge=0, le=10)
    feedback: str
    strengths: list[str]
    improvements: list[str]


class CreateSessionRequest(InterviewChoice):
    user_email: EmailStr = Field(alias="userEmail")


class SaveQARequest(RpcModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    question: str
    answer: str
    ai_score: float = Field(alias="aiScore", ge=0, le=10)
    ai_feedback: str = Field(alias="aiFeedback")


class CompleteSessionRequest(RpcModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    score: float | None = None
    feedback: Any = None


class UserEmailRequest(RpcModel):
    user_email: EmailStr = Field(alias="userEmail")


class SignInRequest(BaseModel):
    email: EmailStr


class StartInterviewRequest(InterviewChoice):
    pass


class SubmitAnswerRequest(RpcModel):
    session_id: str = Field(min_length=1)
    answer: str

    @field_validator("answer")
    @classmethod
    def _answer_not_blank(cls, value: str) -> str:
        if not str(value or "").strip():
            raise ValueError("answer must not be empty")
        return value.strip()


class CheckoutRequest(RpcModel):
    # missing fields are reported by the route as 400, malformed email as 422
    price_id: str = Field(default="", alias="priceId")
    user_email: EmailStr | None = Field(default=None, alias="userEmail")
