from typing import Any

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str
    content: Any = ""


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    sessionId: str | None = None


class TrackRequest(BaseModel):
    sessionId: str | None = None
    metrics: dict[str, Any] = Field(default_factory=dict)
    interruptionDetected: bool = False


class SessionRequest(BaseModel):
    sessionId: str | None = None


class ReportRequest(BaseModel):
    sessionId: str | None = None
    conversationHistory: list[dict[str, Any]] = Field(default_factory=list)


class TTSRequest(BaseModel):
    text: str = ""


class SessionInitResponse(BaseModel):
    sessionId: str
    interests: list[str]


class SuccessResponse(BaseModel):
    success: bool = True


class TranscriptionResponse(BaseModel):
    text: str
    metrics: dict[str, Any] = Field(default_factory=dict)
