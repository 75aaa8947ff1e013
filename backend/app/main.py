from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
import asyncio
import logging
import os

from app.errors import GatewayError, SessionNotFoundError, StoreError
from app.interview.engine import TurnPolicyEngine
from app.interview.evaluator import TranscriptAnalyzer
from app.interview.policy import build_topic_selector
from app.schemas import (
    ChatRequest,
    ReportRequest,
    SessionInitResponse,
    SessionRequest,
    SuccessResponse,
    TrackRequest,
    TranscriptionResponse,
    TTSRequest,
)
from app.services.openai_service import complete_text, create_chat_completion
from app.services.tts_service import ElevenLabsTTSService
from app.services.whisper_service import WhisperService
from app.session.registry import SessionRegistry
from app.session.session_store import build_session_store
from app.system_metrics import get_metrics_snapshot, increment_metric
from core.config import (
    ELEVENLABS_API_KEY,
    OPENAI_API_KEY,
    QA_MODE,
    SESSION_CLEANUP_INTERVAL_SEC,
    TOPIC_SELECTION,
)

app = FastAPI(title="Mock Interview Board")
logger = logging.getLogger("app.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return ["*"]
    return [item.strip() for item in raw.split(",") if item.strip()]


_allowed_origins = _get_allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

session_store = build_session_store()
session_registry = SessionRegistry(session_store)
turn_engine = TurnPolicyEngine(
    session_registry,
    completion_fn=create_chat_completion,
    selector=build_topic_selector(TOPIC_SELECTION),
)
transcript_analyzer = TranscriptAnalyzer(session_registry, completion_fn=complete_text)
whisper_service = WhisperService()
tts_service = ElevenLabsTTSService()
_session_cleanup_task: asyncio.Task | None = None


@app.on_event("startup")
async def startup_banner():
    global _session_cleanup_task
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED")
    if not OPENAI_API_KEY:
        logger.error("[SYSTEM] OPENAI_API_KEY not set - chat, transcription and reports will fail")
    if not ELEVENLABS_API_KEY:
        logger.error("[SYSTEM] ELEVENLABS_API_KEY not set - speech synthesis will fail")
    logger.info("[SYSTEM] CORS allow_origins=%s", _allowed_origins)
    logger.info("[SYSTEM] session_store=%s topic_selection=%s", getattr(session_store, "mode", "?"), TOPIC_SELECTION)

    async def _session_cleanup_loop():
        while True:
            await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SEC)
            removed = await session_store.cleanup_expired()
            if removed > 0:
                increment_metric("sessions_expired", removed)
                logger.info("[SYSTEM] cleaned expired sessions=%s", removed)

    _session_cleanup_task = asyncio.create_task(_session_cleanup_loop())


@app.on_event("shutdown")
async def shutdown_handler():
    global _session_cleanup_task
    if _session_cleanup_task is not None:
        _session_cleanup_task.cancel()
        try:
            await _session_cleanup_task
        except asyncio.CancelledError:
            pass
        finally:
            _session_cleanup_task = None
    await session_store.close()
    logger.info("[SYSTEM] shutdown complete")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "backend", "sessionStore": getattr(session_store, "mode", "unknown")}


@app.get("/api/system/metrics")
async def system_metrics():
    return get_metrics_snapshot()


@app.post("/api/session/init", response_model=SessionInitResponse)
async def init_session():
    try:
        session = await session_registry.create()
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"sessionId": session.session_id, "interests": session.interests}


@app.post("/api/stt", response_model=TranscriptionResponse)
async def speech_to_text(audio: UploadFile = File(...)):
    audio_bytes = await audio.read()
    try:
        text = await whisper_service.transcribe(
            audio_bytes,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type or "audio/webm",
        )
    except GatewayError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"text": text, "metrics": {}}


@app.post("/api/tts")
async def text_to_speech(req: TTSRequest):
    text = req.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="text is required")
    try:
        chunks = await tts_service.open_stream(text)
    except GatewayError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return StreamingResponse(chunks, media_type="audio/mpeg")


@app.post("/api/chat")
async def chat(req: ChatRequest):
    messages = [message.model_dump() for message in req.messages]
    try:
        return await turn_engine.next_turn(req.sessionId, messages)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except GatewayError as exc:
        logger.error("chat gateway failure | session=%s err=%s", req.sessionId, exc)
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/api/session/track", response_model=SuccessResponse)
async def track_metrics(req: TrackRequest):
    try:
        await session_registry.track(req.sessionId, req.metrics, interruption_detected=req.interruptionDetected)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except StoreError as exc:
        logger.error("track store failure | session=%s err=%s", req.sessionId, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return {"success": True}


@app.post("/api/session/delete", response_model=SuccessResponse)
async def delete_session(req: SessionRequest):
    session_id = str(req.sessionId or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID required")
    try:
        await session_registry.delete(session_id)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"success": True}


@app.post("/api/session/report")
async def session_report(req: ReportRequest):
    try:
        return await transcript_analyzer.generate_report(req.sessionId, req.conversationHistory)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except GatewayError as exc:
        logger.error("report gateway failure | session=%s err=%s", req.sessionId, exc)
        raise HTTPException(status_code=500, detail=str(exc))
