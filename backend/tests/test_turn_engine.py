import asyncio

import pytest

from app.errors import GatewayError, SessionNotFoundError
from app.interview.engine import TurnPolicyEngine
from app.interview.topics import INTERVIEW_TOPICS, Topic
from app.prompts import OPENING_INSTRUCTION

from conftest import FakeCompletionGateway


def _user(text: str) -> dict:
    return {"role": "user", "content": text}


def _persona() -> dict:
    return {"role": "system", "content": "client persona"}


async def _state(registry, session_id):
    return (await registry.get(session_id)).conversation_state


@pytest.mark.asyncio
async def test_opening_turn_asks_motivation_without_topic(engine, registry, completion_gateway):
    session = await registry.create()

    reply = await engine.next_turn(session.session_id, [_persona(), _user("I am Tanya, an engineer.")])

    assert reply["choices"][0]["message"]["content"] == "Question 1?"
    sent = completion_gateway.calls[0]["messages"]
    assert sent[0] == _persona()
    assert sent[1] == {"role": "system", "content": OPENING_INSTRUCTION}
    assert sent[2] == _user("I am Tanya, an engineer.")

    state = await _state(registry, session.session_id)
    assert state.question_count == 1
    assert state.current_topic is None
    assert state.topics_covered == []
    assert state.has_greeted is True
    assert state.asked_introduction is True


@pytest.mark.asyncio
async def test_second_turn_opens_first_catalog_topic(engine, registry, completion_gateway):
    session = await registry.create()

    await engine.next_turn(session.session_id, [_persona(), _user("intro")])
    await engine.next_turn(session.session_id, [_persona(), _user("because I care")])

    state = await _state(registry, session.session_id)
    first_topic = INTERVIEW_TOPICS[0].name
    assert state.question_count == 2
    assert state.current_topic == first_topic
    assert state.questions_on_current_topic == 1
    assert state.topics_covered == [first_topic]

    guidance = completion_gateway.calls[1]["messages"][1]["content"]
    assert f"CURRENT TOPIC: {first_topic}" in guidance
    assert "Question 1/10 on this topic" in guidance
    assert "Question 2/70 overall" in guidance


@pytest.mark.asyncio
async def test_question_limit_returns_closing_without_gateway_call(registry, completion_gateway):
    engine = TurnPolicyEngine(
        registry,
        completion_fn=completion_gateway,
        question_limit=70,
        questions_per_topic=10,
        candidate_first_name="Tanya",
    )
    session = await registry.create()

    max_seen_on_topic = 0
    for turn in range(70):
        await engine.next_turn(session.session_id, [_persona(), _user(f"answer {turn}")])
        state = await _state(registry, session.session_id)
        max_seen_on_topic = max(max_seen_on_topic, state.questions_on_current_topic)

    assert len(completion_gateway.calls) == 70
    assert state.question_count == 70
    assert state.should_conclude is True
    assert max_seen_on_topic == 10
    assert state.topics_covered == [topic.name for topic in INTERVIEW_TOPICS[:7]]

    closing = await engine.next_turn(session.session_id, [_persona(), _user("one more")])

    assert len(completion_gateway.calls) == 70
    assert closing["choices"][0]["message"]["content"] == "Your interview is over, Tanya. Thank you."
    assert closing["choices"][0]["finish_reason"] == "stop"
    assert (await _state(registry, session.session_id)).question_count == 70


@pytest.mark.asyncio
async def test_small_catalog_revisits_topics_after_full_coverage(registry, completion_gateway):
    catalog = (Topic("Alpha", "a"), Topic("Beta", "b"))
    engine = TurnPolicyEngine(
        registry,
        completion_fn=completion_gateway,
        catalog=catalog,
        question_limit=20,
        questions_per_topic=2,
    )
    session = await registry.create()

    for turn in range(9):
        await engine.next_turn(session.session_id, [_user(f"answer {turn}")])

    state = await _state(registry, session.session_id)
    assert state.topics_covered == ["Alpha", "Beta"]
    assert state.topics_discussed == ["Alpha", "Beta", "Alpha", "Beta"]
    assert state.questions_on_current_topic == 2


@pytest.mark.asyncio
async def test_unknown_session_raises_and_calls_nothing(engine, store, completion_gateway):
    with pytest.raises(SessionNotFoundError):
        await engine.next_turn("nope", [_user("hello")])

    assert completion_gateway.calls == []
    assert await store.get("nope") is None


@pytest.mark.asyncio
async def test_gateway_failure_propagates(registry):
    engine = TurnPolicyEngine(registry, completion_fn=FakeCompletionGateway(fail=True))
    session = await registry.create()

    with pytest.raises(GatewayError):
        await engine.next_turn(session.session_id, [_user("intro")])


@pytest.mark.asyncio
async def test_persona_is_built_from_interests_when_client_sends_none(engine, registry, completion_gateway):
    session = await registry.create()

    await engine.next_turn(session.session_id, [_user("intro")])

    sent = completion_gateway.calls[0]["messages"]
    assert sent[0]["role"] == "system"
    for interest in session.interests:
        assert interest in sent[0]["content"]
    assert sent[1]["content"] == OPENING_INSTRUCTION
    assert sent[2] == _user("intro")


@pytest.mark.asyncio
async def test_sampling_parameters_are_forwarded(engine, registry, completion_gateway):
    session = await registry.create()

    await engine.next_turn(session.session_id, [_user("intro")])

    kwargs = completion_gateway.calls[0]["kwargs"]
    assert kwargs["temperature"] == 0.8
    assert kwargs["max_tokens"] == 120
    assert kwargs["presence_penalty"] == 0.4
    assert kwargs["frequency_penalty"] == 0.6


@pytest.mark.asyncio
async def test_candidate_turns_are_recorded_in_transcript(engine, registry):
    session = await registry.create()

    await engine.next_turn(session.session_id, [_persona(), _user("first answer")])
    await engine.next_turn(
        session.session_id,
        [_persona(), _user("first answer"), {"role": "assistant", "content": "Why?"}, _user("second answer")],
    )

    stored = await registry.get(session.session_id)
    assert stored.metrics.conversation_history == [_user("first answer"), _user("second answer")]


@pytest.mark.asyncio
async def test_sessions_do_not_share_state(engine, registry):
    first = await registry.create()
    second = await registry.create()

    for _ in range(3):
        await engine.next_turn(first.session_id, [_user("a")])
    await engine.next_turn(second.session_id, [_user("b")])

    assert (await _state(registry, first.session_id)).question_count == 3
    assert (await _state(registry, second.session_id)).question_count == 1


@pytest.mark.asyncio
async def test_concurrent_turns_on_one_session_both_count(engine, registry, completion_gateway):
    session = await registry.create()

    await asyncio.gather(
        engine.next_turn(session.session_id, [_user("a")]),
        engine.next_turn(session.session_id, [_user("b")]),
    )

    assert len(completion_gateway.calls) == 2
    assert (await _state(registry, session.session_id)).question_count == 2
