from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_services
from app.auth import RequestContext, get_request_context
from app.schemas import StartInterviewRequest, SubmitAnswerRequest
from app.services.container import Services

router = APIRouter(tags=["interview"])


def _owned_run(services: Services, session_id: str, ctx: RequestContext):
    run = services.engine.get_run(session_id)
    if run.user_email.lower() != ctx.user_email.lower():
        raise HTTPException(status_code=403, detail="Forbidden")
    return run


@router.post("/api/interview/start")
def start_interview(
    req: StartInterviewRequest,
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    snapshot = services.engine.start(ctx.user_email, req.role, req.round_type, req.difficulty)
    return snapshot


@router.post("/api/interview/answer")
def submit_interview_answer(
    req: SubmitAnswerRequest,
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    _owned_run(services, req.session_id, ctx)
    return services.engine.submit_answer(req.session_id, req.answer)


@router.get("/api/interview/{session_id}")
def get_interview_state(
    session_id: str,
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    _owned_run(services, session_id, ctx)
    return services.engine.snapshot(session_id)


@router.post("/api/interview/{session_id}/finish")
def finish_interview(
    session_id: str,
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    _owned_run(services, session_id, ctx)
    return services.engine.finish(session_id)


@router.get("/api/session/{session_id}/results")
def get_session_results(
    session_id: str,
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    session = services.sessions.get_session(session_id)
    owner = services.sessions.get_user_profile(ctx.user_email)
    if session.user_id != owner.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return services.engine.results(session_id)


@router.get("/api/dashboard")
def dashboard(
    ctx: RequestContext = Depends(get_request_context),
    services: Services = Depends(get_services),
):
    sessions = services.sessions.get_user_sessions(ctx.user_email)
    now = services.clock()
    return {
        "usage": services.sessions.get_usage(ctx.user_email),
        "recent_sessions": [session.to_dict() for session in sessions[:10]],
        "live_runs": [run.snapshot(now) for run in services.registry.active_runs(ctx.user_email)],
    }
