from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Any


@dataclass
class ConversationState:
    question_count: int = 0
    current_topic: str | None = None
    questions_on_current_topic: int = 0
    topics_covered: list[str] = field(default_factory=list)
    topics_discussed: list[str] = field(default_factory=list)
    has_greeted: bool = False
    asked_introduction: bool = False
    should_conclude: bool = False

    def to_dict(self) -> dict:
        return {
            "questionCount": int(self.question_count),
            "currentTopic": self.current_topic,
            "questionsOnCurrentTopic": int(self.questions_on_current_topic),
            "topicsCovered": list(self.topics_covered),
            "topicsDiscussed": list(self.topics_discussed),
            "hasGreeted": bool(self.has_greeted),
            "askedIntroduction": bool(self.asked_introduction),
            "shouldConclude": bool(self.should_conclude),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ConversationState":
        data = data or {}
        covered = [str(item) for item in (data.get("topicsCovered") or [])]
        # state written before the discussion history existed only carries topicsCovered
        discussed = data.get("topicsDiscussed")
        if discussed is None:
            discussed = list(covered)
        current_topic = data.get("currentTopic")
        return cls(
            question_count=max(0, int(data.get("questionCount") or 0)),
            current_topic=str(current_topic) if current_topic else None,
            questions_on_current_topic=max(0, int(data.get("questionsOnCurrentTopic") or 0)),
            topics_covered=covered,
            topics_discussed=[str(item) for item in discussed],
            has_greeted=bool(data.get("hasGreeted", False)),
            asked_introduction=bool(data.get("askedIntroduction", False)),
            should_conclude=bool(data.get("shouldConclude", False)),
        )


@dataclass
class SessionMetrics:
    responses: list[dict] = field(default_factory=list)
    interruptions: int = 0
    conversation_history: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "responses": [dict(item) for item in self.responses],
            "interruptions": int(self.interruptions),
            "conversationHistory": [dict(item) for item in self.conversation_history],
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "SessionMetrics":
        data = data or {}
        return cls(
            responses=[dict(item) for item in (data.get("responses") or []) if isinstance(item, dict)],
            interruptions=max(0, int(data.get("interruptions") or 0)),
            conversation_history=[
                dict(item) for item in (data.get("conversationHistory") or []) if isinstance(item, dict)
            ],
        )


@dataclass
class Session:
    session_id: str
    interests: list[str] = field(default_factory=list)
    metrics: SessionMetrics = field(default_factory=SessionMetrics)
    conversation_state: ConversationState | None = None
    created_at: float = 0.0
    updated_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "interests": list(self.interests),
            "metrics": self.metrics.to_dict(),
            "conversationState": self.conversation_state.to_dict() if self.conversation_state else None,
            "createdAt": float(self.created_at),
            "updatedAt": float(self.updated_at or time.time()),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        raw_state = data.get("conversationState")
        return cls(
            session_id=str(data.get("sessionId") or ""),
            interests=[str(item) for item in (data.get("interests") or [])],
            metrics=SessionMetrics.from_dict(data.get("metrics")),
            conversation_state=ConversationState.from_dict(raw_state) if isinstance(raw_state, dict) else None,
            created_at=float(data.get("createdAt") or 0.0),
            updated_at=float(data.get("updatedAt") or 0.0),
        )
