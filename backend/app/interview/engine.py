from __future__ import annotations

import logging
import random
from typing import Any, Awaitable, Callable, Sequence

from app.interview.policy import (
    TopicSelector,
    FirstUncoveredSelector,
    apply_topic_switch,
    needs_topic_switch,
    select_next_topic,
)
from app.interview.topics import INTERVIEW_TOPICS, Topic, get_topic
from app.prompts import (
    OPENING_INSTRUCTION,
    build_closing_remark,
    build_persona_prompt,
    build_topic_guidance,
)
from app.services.openai_service import QUESTION_SAMPLING
from app.session.models import ConversationState, Session
from app.session.registry import SessionRegistry
from app.system_metrics import increment_metric
from core.config import CANDIDATE_FIRST_NAME, QUESTION_LIMIT, QUESTIONS_PER_TOPIC
from core.logger import log_event

logger = logging.getLogger("app.interview.engine")

CompletionFn = Callable[..., Awaitable[dict]]


def closing_completion(candidate_first_name: str) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": build_closing_remark(candidate_first_name),
                },
                "finish_reason": "stop",
            }
        ]
    }


class TurnPolicyEngine:
    """Decides, turn by turn, what the interviewer asks next.

    State lives in the session store only; the engine can be shared by any
    number of stateless request handlers.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        completion_fn: CompletionFn,
        catalog: Sequence[Topic] = INTERVIEW_TOPICS,
        selector: TopicSelector | None = None,
        question_limit: int = QUESTION_LIMIT,
        questions_per_topic: int = QUESTIONS_PER_TOPIC,
        candidate_first_name: str = CANDIDATE_FIRST_NAME,
        sampling: dict[str, Any] | None = None,
        rng: random.Random | None = None,
    ):
        self._registry = registry
        self._completion_fn = completion_fn
        self._catalog = tuple(catalog)
        self._selector = selector or FirstUncoveredSelector()
        self._question_limit = int(question_limit)
        self._questions_per_topic = int(questions_per_topic)
        self._candidate_first_name = candidate_first_name
        self._sampling = dict(QUESTION_SAMPLING if sampling is None else sampling)
        self._rng = rng or random.Random()

    async def next_turn(self, session_id: str | None, messages: list[dict]) -> dict:
        session_id = str(session_id or "")
        async with self._registry.lock(session_id):
            session = await self._registry.require(session_id)
            state = session.conversation_state or ConversationState()

            if state.question_count >= self._question_limit:
                state.should_conclude = True
                session.conversation_state = state
                await self._registry.save(session)
                increment_metric("interviews_concluded")
                log_event("turn_engine", "concluded", session_id, question_count=state.question_count)
                return closing_completion(self._candidate_first_name)

            guidance = self._advance(state)
            state.should_conclude = state.question_count >= self._question_limit
            session.conversation_state = state
            self._record_candidate_turn(session, messages)
            await self._registry.save(session)

        increment_metric("chat_turns")
        log_event(
            "turn_engine",
            "turn_planned",
            session_id,
            question_count=state.question_count,
            topic=state.current_topic,
            topic_question=state.questions_on_current_topic,
            guidance=guidance,
        )

        outgoing = self._assemble_messages(session, messages, guidance)
        return await self._completion_fn(outgoing, **self._sampling)

    def _advance(self, state: ConversationState) -> str:
        """Mutate state for one question and return the guidance for it."""
        if state.question_count == 0 and not state.asked_introduction:
            state.has_greeted = True
            state.asked_introduction = True
            state.question_count += 1
            return OPENING_INSTRUCTION

        # state from before these flags existed has questions but no flags
        state.has_greeted = True
        state.asked_introduction = True

        if needs_topic_switch(state, self._catalog, self._questions_per_topic):
            previous = state.current_topic
            topic = select_next_topic(self._catalog, state, self._selector, self._rng)
            apply_topic_switch(state, topic)
            logger.info("Topic switch | from=%s to=%s", previous, topic.name)

        topic = get_topic(state.current_topic, self._catalog)
        guidance = build_topic_guidance(
            topic_name=topic.name,
            topic_guidance=topic.guidance,
            question_number=state.question_count + 1,
            question_limit=self._question_limit,
            topic_question_number=state.questions_on_current_topic + 1,
            questions_per_topic=self._questions_per_topic,
            topics_covered=state.topics_covered,
        )
        state.question_count += 1
        state.questions_on_current_topic += 1
        return guidance

    @staticmethod
    def _record_candidate_turn(session: Session, messages: list[dict]) -> None:
        for message in reversed(messages or []):
            if str(message.get("role") or "") != "user":
                continue
            content = message.get("content")
            if content:
                session.metrics.conversation_history.append({"role": "user", "content": content})
            return

    @staticmethod
    def _assemble_messages(session: Session, messages: list[dict], guidance: str) -> list[dict]:
        history = [dict(item) for item in (messages or [])]
        if history and str(history[0].get("role") or "") == "system":
            persona, rest = history[0], history[1:]
        else:
            persona, rest = {"role": "system", "content": build_persona_prompt(session.interests)}, history
        return [persona, {"role": "system", "content": guidance}, *rest]
