from fastapi import APIRouter, Depends

from app.api.deps import get_services
from app.interview.evaluator import evaluate_answer
from app.interview.questions import generate_questions
from app.schemas import (
    CompleteSessionRequest,
    CreateSessionRequest,
    EvaluateAnswerRequest,
    EvaluationResult,
    GenerateQuestionsRequest,
    GeneratedQuestion,
    SaveQARequest,
    UserEmailRequest,
)
from app.services.container import Services

router = APIRouter(prefix="/api/rpc", tags=["rpc"])


@router.post("/generateQuestions", response_model=list[GeneratedQuestion])
def generate_questions_route(req: GenerateQuestionsRequest, services: Services = Depends(get_services)):
    return generate_questions(services.llm, req.role, req.round_type, req.difficulty, req.count)


@router.post("/evaluateAnswer", response_model=EvaluationResult)
def evaluate_answer_route(req: EvaluateAnswerRequest, services: Services = Depends(get_services)):
    return evaluate_answer(
        services.llm,
        req.question,
        req.answer,
        req.role,
        req.round_type,
        req.difficulty,
        expected_points=req.expected_points,
    )


@router.post("/createSession")
def create_session_route(req: CreateSessionRequest, services: Services = Depends(get_services)):
    session = services.sessions.create_session(str(req.user_email), req.role, req.round_type, req.difficulty)
    return session.to_dict()


@router.post("/saveQA")
def save_qa_route(req: SaveQARequest, services: Services = Depends(get_services)):
    qa = services.sessions.save_qa(req.session_id, req.question, req.answer, req.ai_score, req.ai_feedback)
    return qa.to_dict()


@router.post("/completeSession")
def complete_session_route(req: CompleteSessionRequest, services: Services = Depends(get_services)):
    session = services.sessions.complete_session(req.session_id, score=req.score, feedback=req.feedback)
    return session.to_dict()


@router.post("/getUserSessions")
def get_user_sessions_route(req: UserEmailRequest, services: Services = Depends(get_services)):
    return [session.to_dict() for session in services.sessions.get_user_sessions(str(req.user_email))]


@router.post("/getUserProfile")
def get_user_profile_route(req: UserEmailRequest, services: Services = Depends(get_services)):
    return services.sessions.get_user_profile(str(req.user_email)).to_dict()


@router.post("/getUsage")
def get_usage_route(req: UserEmailRequest, services: Services = Depends(get_services)):
    return services.sessions.get_usage(str(req.user_email))
