from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
import os
import time

from app.api.billing import router as billing_router
from app.api.identity import router as identity_router
from app.api.interview import router as interview_router
from app.api.rpc import router as rpc_router
from app.errors import QuantPrepError
from app.services.container import Services, build_services
from app.system_metrics import get_metrics_snapshot
from core import config

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("app.main")

RATE_LIMIT_ENABLED = str(os.getenv("RATE_LIMIT_ENABLED", "true")).strip().lower() in {"1", "true", "yes", "on"}
RATE_LIMIT_WINDOW_SEC = max(10, int(os.getenv("RATE_LIMIT_WINDOW_SEC", "60")))
RATE_LIMIT_MAX_REQUESTS = max(20, int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "300")))
COUNTDOWN_SWEEP_INTERVAL_SEC = max(1, int(os.getenv("COUNTDOWN_SWEEP_INTERVAL_SEC", "5")))
SESSION_CLEANUP_TTL_SEC = max(60, int(os.getenv("SESSION_CLEANUP_TTL_SEC", "1800")))


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


def _request_identity(request: Request) -> str:
    forwarded_for = str(request.headers.get("x-forwarded-for") or "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"
    if request.client and request.client.host:
        return str(request.client.host)
    return "unknown"


class FixedWindowRateLimiter:
    def __init__(self, window_sec: int, max_requests: int):
        self.window_sec = window_sec
        self.max_requests = max_requests
        self._lock = asyncio.Lock()
        self._buckets: dict[str, dict[str, float]] = {}

    async def hit(self, identity: str, now_ts: float) -> tuple[bool, int]:
        async with self._lock:
            bucket = self._buckets.get(identity)
            if bucket is None:
                self._buckets[identity] = {"window_start": now_ts, "count": 1}
                return False, 0

            window_start = float(bucket.get("window_start") or now_ts)
            elapsed = now_ts - window_start
            if elapsed >= self.window_sec:
                bucket["window_start"] = now_ts
                bucket["count"] = 1
                return False, 0

            count = int(bucket.get("count") or 0)
            if count >= self.max_requests:
                return True, max(1, int(self.window_sec - elapsed))

            bucket["count"] = count + 1

            if len(self._buckets) > 10000:
                stale_keys = [
                    key
                    for key, value in self._buckets.items()
                    if now_ts - float((value or {}).get("window_start") or now_ts) > (self.window_sec * 2)
                ]
                for key in stale_keys[:3000]:
                    self._buckets.pop(key, None)

            return False, 0


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(title="QuantPrep Interview API")
    app.state.services = services or build_services()
    app.state.auth_secret = config.AUTH_TOKEN_SECRET

    allowed_origins = _get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    limiter = FixedWindowRateLimiter(RATE_LIMIT_WINDOW_SEC, RATE_LIMIT_MAX_REQUESTS)

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if not RATE_LIMIT_ENABLED:
            return await call_next(request)

        path = request.url.path
        if request.method == "OPTIONS" or path.startswith("/docs") or path.startswith("/openapi.json") or path == "/healthz":
            return await call_next(request)

        blocked, retry_after = await limiter.hit(_request_identity(request), time.time())
        if blocked:
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded",
                    "retry_after_sec": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    @app.exception_handler(QuantPrepError)
    async def quantprep_error_handler(request: Request, exc: QuantPrepError):
        if exc.status_code >= 500:
            logger.warning("request failed | path=%s err=%s", request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.on_event("startup")
    async def startup_banner():
        current = app.state.services
        if config.QA_MODE:
            logger.info("[SYSTEM] QA_MODE ENABLED")
        logger.info("[SYSTEM] CORS allow_origins=%s", allowed_origins)
        logger.info(
            "[SYSTEM] backends datastore=%s payments=%s llm=%s",
            type(current.store).__name__,
            getattr(current.payments, "name", "unknown"),
            getattr(current.llm, "name", "unknown"),
        )

        async def _countdown_loop():
            while True:
                await asyncio.sleep(COUNTDOWN_SWEEP_INTERVAL_SEC)
                try:
                    expired = await asyncio.to_thread(current.engine.expire_due)
                    removed = current.registry.cleanup_inactive(SESSION_CLEANUP_TTL_SEC)
                except Exception as exc:
                    logger.warning("[SYSTEM] countdown sweep failed: %s", exc)
                    continue
                if expired or removed:
                    logger.info("[SYSTEM] countdown sweep expired=%s removed=%s", expired, removed)

        app.state.countdown_task = asyncio.create_task(_countdown_loop())

    @app.on_event("shutdown")
    async def shutdown_handler():
        task = getattr(app.state, "countdown_task", None)
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            finally:
                app.state.countdown_task = None
        logger.info("[SYSTEM] shutdown complete")

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "service": "backend"}

    @app.get("/api/system/metrics")
    def system_metrics_route():
        return get_metrics_snapshot(extra={
            "free_tier_monthly_limit": app.state.services.free_limit,
            "session_duration_sec": app.state.services.duration_sec,
        })

    app.include_router(identity_router)
    app.include_router(rpc_router)
    app.include_router(interview_router)
    app.include_router(billing_router)
    return app


app = create_app()
