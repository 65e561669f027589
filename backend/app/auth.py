from dataclasses import dataclass
import logging
import time

from fastapi import HTTPException, Request
from jose import JWTError, jwt

from core import config

logger = logging.getLogger("app.auth")

TOKEN_ALGORITHM = "HS256"


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller, resolved per request from the bearer token."""
    user_email: str
    token: str


def issue_identity_token(email: str, secret: str | None = None, ttl_sec: int | None = None) -> str:
    now_ts = int(time.time())
    payload = {
        "sub": str(email or "").strip().lower(),
        "iat": now_ts,
        "exp": now_ts + int(ttl_sec or config.AUTH_TOKEN_TTL_SEC),
    }
    return jwt.encode(payload, secret or config.AUTH_TOKEN_SECRET, algorithm=TOKEN_ALGORITHM)


def resolve_email_from_token(token: str, secret: str | None = None) -> str:
    try:
        payload = jwt.decode(token, secret or config.AUTH_TOKEN_SECRET, algorithms=[TOKEN_ALGORITHM])
    except JWTError:
        raise HTTPException(401, "Invalid token")

    email = str((payload or {}).get("sub") or "").strip()
    if not email:
        raise HTTPException(401, "Invalid token")
    return email


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization")
    if not auth:
        raise HTTPException(401, "Unauthorized")

    if not auth.startswith("Bearer "):
        raise HTTPException(401, "Unauthorized")

    return auth.replace("Bearer ", "", 1).strip()


def get_request_context(request: Request) -> RequestContext:
    token = _bearer_token(request)
    secret = getattr(request.app.state, "auth_secret", None)
    return RequestContext(user_email=resolve_email_from_token(token, secret=secret), token=token)
