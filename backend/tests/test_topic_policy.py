import random

import pytest

from app.interview.policy import (
    MAX_TOPIC_VISITS,
    FirstUncoveredSelector,
    RandomUncoveredSelector,
    apply_topic_switch,
    build_topic_selector,
    needs_topic_switch,
    select_next_topic,
)
from app.interview.topics import INTERVIEW_TOPICS, Topic, get_topic, next_uncovered
from app.session.models import ConversationState

CATALOG = (
    Topic("Alpha", "alpha guidance"),
    Topic("Beta", "beta guidance"),
    Topic("Gamma", "gamma guidance"),
)


def test_catalog_names_are_unique_and_lookup_works():
    names = [topic.name for topic in INTERVIEW_TOPICS]
    assert len(names) == len(set(names))
    assert get_topic(names[3]) is INTERVIEW_TOPICS[3]
    assert get_topic("No such topic") is None
    assert get_topic(None) is None


def test_next_uncovered_follows_catalog_order():
    assert next_uncovered([], CATALOG).name == "Alpha"
    assert next_uncovered(["Alpha"], CATALOG).name == "Beta"
    assert next_uncovered(["Alpha", "Beta", "Gamma"], CATALOG) is None


def test_first_uncovered_selection_walks_catalog_in_order():
    state = ConversationState()
    selector = FirstUncoveredSelector()

    chosen = []
    for _ in CATALOG:
        topic = select_next_topic(CATALOG, state, selector)
        apply_topic_switch(state, topic)
        chosen.append(topic.name)

    assert chosen == ["Alpha", "Beta", "Gamma"]
    assert state.topics_covered == ["Alpha", "Beta", "Gamma"]


def test_uncovered_topics_always_preferred_with_random_selector():
    state = ConversationState()
    selector = RandomUncoveredSelector(random.Random(3))

    for _ in range(len(INTERVIEW_TOPICS)):
        covered_before = set(state.topics_covered)
        topic = select_next_topic(INTERVIEW_TOPICS, state, selector)
        assert topic.name not in covered_before
        apply_topic_switch(state, topic)

    assert set(state.topics_covered) == {topic.name for topic in INTERVIEW_TOPICS}


def test_second_round_revisits_before_random_fallback():
    state = ConversationState()
    selector = FirstUncoveredSelector()

    for _ in range(len(CATALOG) * MAX_TOPIC_VISITS):
        topic = select_next_topic(CATALOG, state, selector)
        apply_topic_switch(state, topic)

    assert state.topics_discussed == ["Alpha", "Beta", "Gamma", "Alpha", "Beta", "Gamma"]
    assert state.topics_covered == ["Alpha", "Beta", "Gamma"]


def test_revisit_skips_the_topic_just_finished():
    state = ConversationState(
        current_topic="Alpha",
        topics_covered=["Beta", "Gamma", "Alpha"],
        topics_discussed=["Beta", "Gamma", "Alpha"],
    )

    topic = select_next_topic(CATALOG, state, FirstUncoveredSelector())

    assert topic.name == "Beta"


def test_all_topics_seen_twice_falls_back_to_full_catalog():
    state = ConversationState(
        current_topic="Gamma",
        topics_covered=["Alpha", "Beta", "Gamma"],
        topics_discussed=["Alpha", "Beta", "Gamma"] * 2,
    )
    rng = random.Random(11)

    picks = {select_next_topic(CATALOG, state, FirstUncoveredSelector(), rng).name for _ in range(60)}

    assert picks == {"Alpha", "Beta", "Gamma"}


def test_switch_resets_per_topic_counter():
    state = ConversationState(current_topic="Alpha", questions_on_current_topic=10, topics_covered=["Alpha"])

    apply_topic_switch(state, CATALOG[1])

    assert state.current_topic == "Beta"
    assert state.questions_on_current_topic == 0
    assert state.topics_covered == ["Alpha", "Beta"]
    assert state.topics_discussed == ["Beta"]


def test_needs_topic_switch_conditions():
    assert needs_topic_switch(ConversationState(), CATALOG, 10) is True
    assert needs_topic_switch(ConversationState(current_topic="Alpha", questions_on_current_topic=9), CATALOG, 10) is False
    assert needs_topic_switch(ConversationState(current_topic="Alpha", questions_on_current_topic=10), CATALOG, 10) is True
    assert needs_topic_switch(ConversationState(current_topic="Removed", questions_on_current_topic=1), CATALOG, 10) is True


def test_build_topic_selector_modes():
    assert isinstance(build_topic_selector("first_uncovered"), FirstUncoveredSelector)
    assert isinstance(build_topic_selector(""), FirstUncoveredSelector)
    assert isinstance(build_topic_selector("random"), RandomUncoveredSelector)
    with pytest.raises(ValueError):
        build_topic_selector("round_robin")


def test_select_from_empty_catalog_is_an_error():
    with pytest.raises(ValueError):
        select_next_topic((), ConversationState(), FirstUncoveredSelector())
