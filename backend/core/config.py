import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    try:
        return max(minimum, int(str(os.getenv(name) or default).strip()))
    except ValueError:
        return default


ENVIRONMENT = str(os.getenv("ENV") or "development").strip().lower()
QA_MODE = os.getenv("QA_MODE", "false").lower() == "true"

# backend selectors: datastore memory|supabase, payments memory|stripe, llm offline|gemini|openai
DATASTORE_BACKEND = str(os.getenv("DATASTORE_BACKEND") or "memory").strip().lower()
PAYMENTS_BACKEND = str(os.getenv("PAYMENTS_BACKEND") or "memory").strip().lower()
LLM_PROVIDER = str(os.getenv("LLM_PROVIDER") or "offline").strip().lower()

GEMINI_API_KEY = str(os.getenv("GEMINI_API_KEY") or "").strip()
GEMINI_MODEL = str(os.getenv("GEMINI_MODEL") or "gemini-1.5-flash").strip()
OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "gpt-4.1-mini").strip()

SUPABASE_URL = str(os.getenv("SUPABASE_URL") or "").strip()
SUPABASE_KEY = str(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_KEY") or "").strip()

STRIPE_SECRET_KEY = str(os.getenv("STRIPE_SECRET_KEY") or "").strip()
STRIPE_WEBHOOK_SECRET = str(os.getenv("STRIPE_WEBHOOK_SECRET") or "whsec_local").strip()
STRIPE_PRO_PRICE_ID = str(os.getenv("STRIPE_PRO_PRICE_ID") or "price_mock_pro").strip()
STRIPE_ENTERPRISE_PRICE_ID = str(os.getenv("STRIPE_ENTERPRISE_PRICE_ID") or "price_mock_enterprise").strip()

AUTH_TOKEN_SECRET = str(os.getenv("AUTH_TOKEN_SECRET") or "quantprep-dev-secret").strip()
AUTH_TOKEN_TTL_SEC = _env_int("AUTH_TOKEN_TTL_SEC", 7 * 86400, minimum=60)
APP_BASE_URL = str(os.getenv("APP_BASE_URL") or "http://localhost:3000").strip().rstrip("/")

FREE_TIER_MONTHLY_LIMIT = _env_int("FREE_TIER_MONTHLY_LIMIT", 3, minimum=1)
SESSION_QUESTION_COUNT = _env_int("SESSION_QUESTION_COUNT", 5, minimum=1)
SESSION_DURATION_SEC = _env_int("SESSION_DURATION_SEC", 1800, minimum=10)
