import logging
from typing import AsyncIterator

import httpx

from app.errors import GatewayError
from app.system_metrics import increment_metric
from core.config import ELEVENLABS_API_KEY, ELEVENLABS_MODEL_ID, ELEVENLABS_VOICE_ID

logger = logging.getLogger("app.services.tts_service")

ELEVENLABS_BASE_URL = "https://api.elevenlabs.io"
VOICE_SETTINGS = {
    "stability": 0.6,
    "similarity_boost": 0.8,
    "style": 0.7,
    "use_speaker_boost": True,
}


class ElevenLabsTTSService:
    """Streams synthesized speech (audio/mpeg) from ElevenLabs."""

    def __init__(
        self,
        api_key: str = ELEVENLABS_API_KEY,
        voice_id: str = ELEVENLABS_VOICE_ID,
        model_id: str = ELEVENLABS_MODEL_ID,
        timeout_sec: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.timeout_sec = timeout_sec
        self._transport = transport

    def _payload(self, text: str) -> dict:
        return {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": dict(VOICE_SETTINGS),
            "optimize_streaming_latency": 3,
            "output_format": "mp3_22050_32",
        }

    async def open_stream(self, text: str) -> AsyncIterator[bytes]:
        """Start synthesis and return the audio chunk iterator.

        The upstream status is checked before returning, so a failed call
        surfaces as GatewayError instead of a truncated audio stream.
        """
        http_client = httpx.AsyncClient(
            base_url=ELEVENLABS_BASE_URL,
            timeout=self.timeout_sec,
            transport=self._transport,
        )
        request = http_client.build_request(
            "POST",
            f"/v1/text-to-speech/{self.voice_id}/stream",
            json=self._payload(text),
            headers={
                "Accept": "audio/mpeg",
                "Content-Type": "application/json",
                "xi-api-key": self.api_key,
            },
        )
        try:
            response = await http_client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await http_client.aclose()
            increment_metric("gateway_failures")
            logger.error("TTS transport failure: %s", exc)
            raise GatewayError("TTS API", str(exc) or exc.__class__.__name__) from exc

        if response.status_code >= 400:
            body = await response.aread()
            await response.aclose()
            await http_client.aclose()
            increment_metric("gateway_failures")
            logger.error("TTS error status=%s body=%s", response.status_code, body[:200])
            raise GatewayError("TTS API", f"status {response.status_code}")

        async def _chunks() -> AsyncIterator[bytes]:
            try:
                async for chunk in response.aiter_bytes():
                    if chunk:
                        yield chunk
            finally:
                await response.aclose()
                await http_client.aclose()

        return _chunks()
