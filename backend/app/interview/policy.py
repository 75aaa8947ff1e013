from __future__ import annotations

from collections import Counter
import random
from typing import Protocol, Sequence

from app.interview.topics import Topic
from app.session.models import ConversationState

MAX_TOPIC_VISITS = 2


class TopicSelector(Protocol):
    def choose(self, eligible: Sequence[Topic]) -> Topic:
        ...


class FirstUncoveredSelector:
    """Deterministic: first eligible topic in catalog order."""

    name = "first_uncovered"

    def choose(self, eligible: Sequence[Topic]) -> Topic:
        return eligible[0]


class RandomUncoveredSelector:
    name = "random"

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def choose(self, eligible: Sequence[Topic]) -> Topic:
        return self._rng.choice(list(eligible))


def build_topic_selector(mode: str, rng: random.Random | None = None) -> TopicSelector:
    normalized = str(mode or "").strip().lower()
    if normalized == "random":
        return RandomUncoveredSelector(rng)
    if normalized not in {"", "first_uncovered"}:
        raise ValueError(f"Unknown topic selection mode: {mode}")
    return FirstUncoveredSelector()


def select_next_topic(
    catalog: Sequence[Topic],
    state: ConversationState,
    selector: TopicSelector,
    rng: random.Random | None = None,
) -> Topic:
    """Pick the topic to switch to.

    Never-discussed topics come first. Once every topic has been discussed,
    topics seen fewer than MAX_TOPIC_VISITS times are eligible again (the one
    just finished excluded). After that the whole catalog is fair game,
    chosen uniformly at random.
    """
    if not catalog:
        raise ValueError("Topic catalog is empty")

    visits = Counter(state.topics_discussed)
    fresh = [topic for topic in catalog if visits[topic.name] == 0]
    if fresh:
        return selector.choose(fresh)

    revisits = [
        topic
        for topic in catalog
        if visits[topic.name] < MAX_TOPIC_VISITS and topic.name != state.current_topic
    ]
    if revisits:
        return selector.choose(revisits)

    return (rng or random).choice(list(catalog))


def apply_topic_switch(state: ConversationState, topic: Topic) -> None:
    state.current_topic = topic.name
    state.questions_on_current_topic = 0
    state.topics_discussed.append(topic.name)
    if topic.name not in state.topics_covered:
        state.topics_covered.append(topic.name)


def needs_topic_switch(state: ConversationState, catalog: Sequence[Topic], questions_per_topic: int) -> bool:
    if not state.current_topic:
        return True
    if all(topic.name != state.current_topic for topic in catalog):
        return True
    return state.questions_on_current_topic >= questions_per_topic
