from __future__ import annotations

import copy
import logging
import re
from typing import Awaitable, Callable

from pydantic import BaseModel, Field, ValidationError

from app.errors import StoreError
from app.prompts import EVALUATOR_SYSTEM_PROMPT, build_evaluation_prompt
from app.session.models import Session
from app.session.registry import SessionRegistry
from app.system_metrics import increment_metric
from core.config import REPORT_MODEL, REPORT_TIMEOUT_SEC
from core.logger import log_event

logger = logging.getLogger("app.interview.evaluator")

TextCompletionFn = Callable[..., Awaitable[str]]

EVALUATION_SAMPLING = {
    "temperature": 0.3,
    "max_tokens": 2000,
}

_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)


class CategoryScore(BaseModel):
    score: int = Field(ge=0, le=10)
    feedback: str


class CritiqueScores(BaseModel):
    content: CategoryScore
    communication: CategoryScore
    confidence: CategoryScore
    knowledge: CategoryScore
    etiquette: CategoryScore


class Critique(BaseModel):
    scores: CritiqueScores
    strengths: list[str]
    improvements: list[str]
    overall: str
    detailedNotes: dict[str, str]


FALLBACK_CRITIQUE: dict = {
    "scores": {
        "content": {"score": 6, "feedback": "Responses need more depth. Provide specific examples and data to support claims. Too generic."},
        "communication": {"score": 6, "feedback": "Work on being more concise. Several responses were unnecessarily lengthy."},
        "confidence": {"score": 7, "feedback": "Generally composed but avoid filler words. Practice speaking with more conviction."},
        "knowledge": {"score": 6, "feedback": "Surface-level understanding evident. Study your optional subject more thoroughly."},
        "etiquette": {"score": 7, "feedback": "Professional but could be more engaged. Eye contact and body language matter."},
    },
    "strengths": [
        "Maintained professional demeanor",
        "Attempted to answer all questions",
    ],
    "improvements": [
        "Responses lack specific examples - every answer needs concrete data/cases",
        "Too verbose - practice 2-3 minute responses maximum",
        "Insufficient depth on core topics - shows gaps in preparation",
        "Avoid generic statements - board wants specifics, not platitudes",
    ],
    "overall": (
        "This performance would likely not clear the personality test. The board expects depth, precision, "
        "and evidence-based responses. Most answers were generic and lacked the analytical rigor needed. "
        "Significant improvement required in content depth and response structure."
    ),
    "detailedNotes": {
        "responseLengths": "Several responses exceeded optimal length without adding value",
        "relevance": "Stayed mostly on topic but often gave generic answers instead of specific analysis",
        "depth": "Surface-level responses dominant. Need to demonstrate deeper understanding",
        "structure": "Responses lack clear structure. Use framework: claim, evidence, implication",
    },
}


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", str(text or "")).strip()


def decode_critique(raw_text: str) -> dict | None:
    """Strictly decode evaluator output. Returns None unless the whole shape validates."""
    try:
        critique = Critique.model_validate_json(strip_code_fences(raw_text))
    except ValidationError as exc:
        logger.warning("Critique decode failed: %s", exc.errors(include_input=False)[:3])
        return None
    return critique.model_dump()


def _average(responses: list[dict], key: str) -> float:
    values = []
    for item in responses:
        value = item.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        values.append(float(value))
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def summarize_metrics(session: Session) -> dict:
    responses = session.metrics.responses
    state = session.conversation_state
    return {
        "totalResponses": len(responses),
        "interruptions": int(session.metrics.interruptions),
        "avgFillers": _average(responses, "fillers"),
        "avgRepetitions": _average(responses, "repetitions"),
        "questionsAsked": int(state.question_count) if state else 0,
    }


class TranscriptAnalyzer:
    """Post-interview critique. Consumes the session: it is deleted once a
    critique (real or fallback) has been produced."""

    def __init__(
        self,
        registry: SessionRegistry,
        completion_fn: TextCompletionFn,
        model: str = REPORT_MODEL,
        timeout_sec: float = REPORT_TIMEOUT_SEC,
    ):
        self._registry = registry
        self._completion_fn = completion_fn
        self._model = model
        self._timeout_sec = timeout_sec

    async def generate_report(self, session_id: str | None, conversation_history: list[dict] | None = None) -> dict:
        session_id = str(session_id or "")
        session = await self._registry.require(session_id)
        transcript = list(conversation_history or []) or list(session.metrics.conversation_history)

        messages = [
            {"role": "system", "content": EVALUATOR_SYSTEM_PROMPT},
            {"role": "user", "content": build_evaluation_prompt(transcript, len(session.metrics.responses))},
        ]
        # no session lock across the evaluator call; it can outlast a store lease
        raw_text = await self._completion_fn(
            messages,
            model=self._model,
            timeout_sec=self._timeout_sec,
            **EVALUATION_SAMPLING,
        )

        analysis = decode_critique(raw_text)
        used_fallback = analysis is None
        if used_fallback:
            analysis = copy.deepcopy(FALLBACK_CRITIQUE)
            increment_metric("report_fallbacks")

        try:
            async with self._registry.lock(session_id):
                # metrics tracked while the critique was being written still count
                latest = await self._registry.get(session_id)
                raw_metrics = summarize_metrics(latest or session)
                if latest is not None:
                    await self._registry.delete(session_id)
        except StoreError as exc:
            # the session still expires with its TTL
            raw_metrics = summarize_metrics(session)
            log_event("evaluator", "session_cleanup_failed", session_id, level=logging.WARNING, error=exc)

        increment_metric("reports_generated")
        log_event(
            "evaluator",
            "report_generated",
            session_id,
            fallback=used_fallback,
            transcript=transcript,
            total_responses=raw_metrics["totalResponses"],
        )
        return {
            "analysis": analysis,
            "rawMetrics": raw_metrics,
        }
