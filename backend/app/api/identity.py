from fastapi import APIRouter, Depends

from app.api.deps import get_services
from app.auth import RequestContext, get_request_context, issue_identity_token
from app.schemas import SignInRequest
from app.services.container import Services

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/sign-in")
def sign_in(req: SignInRequest, services: Services = Depends(get_services)):
    # No credential check: this only fabricates a local identity for practice use.
    user = services.sessions.get_or_create_user(str(req.email))
    return {
        "token": issue_identity_token(user.email),
        "user": user.to_dict(),
    }


@router.get("/me")
def me(ctx: RequestContext = Depends(get_request_context), services: Services = Depends(get_services)):
    return services.sessions.get_user_profile(ctx.user_email).to_dict()
