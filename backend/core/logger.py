import json
import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger("quantprep")

# free text written by candidates or the model never reaches the log verbatim
_REDACTED_KEYS = {"answer", "question", "feedback", "ai_feedback", "prompt", "text"}
_EMAIL_KEYS = {"email", "user_email", "useremail"}


def _mask_email(value: Any) -> str:
	local, _, domain = str(value or "").partition("@")
	if not domain:
		return "***"
	return f"{local[:1]}***@{domain}"


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in _REDACTED_KEYS:
		text = str(value or "")
		return {
			"redacted": True,
			"length": len(text),
		}
	if normalized_key in _EMAIL_KEYS:
		return _mask_email(value)
	if isinstance(value, datetime):
		return value.isoformat()
	if isinstance(value, (str, int, float, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, **kwargs) -> None:
	"""Emit one JSON line per domain event; session_id may be empty for user-level events."""
	payload = {
		"component": str(component or "app"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	logger.info(json.dumps(payload, ensure_ascii=False, default=str))
