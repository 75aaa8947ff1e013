import json
import logging
from typing import Any

logger = logging.getLogger("interview")


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in {"text", "transcript", "content", "prompt", "guidance", "messages"}:
		# message lists and transcripts are reported by size only
		if isinstance(value, (list, tuple)):
			return {
				"redacted": True,
				"items": len(value),
			}
		return {
			"redacted": True,
			"length": len(str(value or "")),
		}
	if isinstance(value, (str, int, float, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, level: int = logging.INFO, **kwargs) -> None:
	"""One JSON line per session lifecycle event. Candidate speech never reaches the log."""
	payload = {
		"component": str(component or "interview"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
