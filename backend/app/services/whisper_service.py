import asyncio
import logging
import time

from app.errors import GatewayError
from app.services import openai_service
from app.system_metrics import increment_metric, observe_gateway_latency_ms
from core.config import STT_MODEL

logger = logging.getLogger("app.services.whisper_service")


class WhisperService:
    """Hosted Whisper transcription: audio bytes in, plain text out."""

    def __init__(self, model: str = STT_MODEL, timeout_sec: float = 30.0):
        self.model = model
        self.timeout_sec = timeout_sec

    async def transcribe(self, audio_bytes: bytes, filename: str = "audio.webm", content_type: str = "audio/webm") -> str:
        if not audio_bytes:
            raise GatewayError("STT API", "empty audio payload")

        started = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                openai_service.client.audio.transcriptions.create(
                    model=self.model,
                    file=(filename or "audio.webm", audio_bytes, content_type or "audio/webm"),
                ),
                timeout=self.timeout_sec,
            )
        except asyncio.TimeoutError as exc:
            increment_metric("gateway_failures")
            raise GatewayError("STT API", f"timed out after {self.timeout_sec:.0f}s") from exc
        except Exception as exc:
            increment_metric("gateway_failures")
            logger.error("STT failure | model=%s err=%s", self.model, exc)
            raise GatewayError("STT API", str(exc)) from exc

        observe_gateway_latency_ms((time.perf_counter() - started) * 1000.0)
        return str(getattr(result, "text", "") or "").strip()
