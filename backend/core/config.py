import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=True)


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
ELEVENLABS_API_KEY = str(os.getenv("ELEVENLABS_API_KEY") or "").strip()
ELEVENLABS_VOICE_ID = str(os.getenv("ELEVENLABS_VOICE_ID") or "43EwOfIMJShg3J9RLxZJ").strip()
ELEVENLABS_MODEL_ID = str(os.getenv("ELEVENLABS_MODEL_ID") or "eleven_flash_v2_5").strip()

CHAT_MODEL = str(os.getenv("CHAT_MODEL") or "gpt-4o-mini").strip()  # fine-tuned interviewer models go here
REPORT_MODEL = str(os.getenv("REPORT_MODEL") or "gpt-4o").strip()
STT_MODEL = str(os.getenv("STT_MODEL") or "whisper-1").strip()
QA_MODE = _env_flag("QA_MODE")

USE_REDIS_SESSION_STORE = _env_flag("USE_REDIS_SESSION_STORE")
REDIS_URL = str(os.getenv("REDIS_URL") or "").strip()
SESSION_TTL_SEC = max(60, int(os.getenv("SESSION_TTL_SEC", "3600")))
SESSION_CLEANUP_INTERVAL_SEC = max(30, int(os.getenv("SESSION_CLEANUP_INTERVAL_SEC", "120")))

QUESTION_LIMIT = max(1, int(os.getenv("QUESTION_LIMIT", "70")))
QUESTIONS_PER_TOPIC = max(1, int(os.getenv("QUESTIONS_PER_TOPIC", "10")))
TOPIC_SELECTION = str(os.getenv("TOPIC_SELECTION") or "first_uncovered").strip().lower()

CHAT_TIMEOUT_SEC = max(1.0, float(os.getenv("CHAT_TIMEOUT_SEC", "20")))
REPORT_TIMEOUT_SEC = max(1.0, float(os.getenv("REPORT_TIMEOUT_SEC", "60")))
GATEWAY_RETRIES = max(0, int(os.getenv("GATEWAY_RETRIES", "2")))

CANDIDATE_NAME = str(os.getenv("CANDIDATE_NAME") or "Tanya Singh").strip()
CANDIDATE_FIRST_NAME = str(os.getenv("CANDIDATE_FIRST_NAME") or CANDIDATE_NAME.split(" ")[0]).strip()
INTERVIEWER_NAME = str(os.getenv("INTERVIEWER_NAME") or "Sameer Shah").strip()
