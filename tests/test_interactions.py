from __future__ import annotations

import itertools

import numpy as np
import pytest

from inn_sim.core.config import DIALOG_OPTIONS
from inn_sim.core.errors import FailureReason
from inn_sim.core.events import DialogueSpoken, InteractionEnded, InteractionStarted
from inn_sim.social.interactions import DialogueBook, InteractionQueue, InteractionRecord
from inn_sim.viz.logger import SimLogger


def make_queue(bus, log, seed: int = 0, **kwargs) -> InteractionQueue:
    counter = itertools.count(1000)
    queue = InteractionQueue(
        bus, log, rng=np.random.default_rng(seed), now_ms=lambda: next(counter), **kwargs
    )
    queue.register_object("hearth", ["inspect", "stoke"])
    queue.register_npc("bard", ["dialog"])
    return queue


@pytest.fixture
def queue(bus, log) -> InteractionQueue:
    return make_queue(bus, log)


def spoken(events) -> list[DialogueSpoken]:
    return [e for e in events if isinstance(e, DialogueSpoken)]


def test_unknown_target_rejected(queue):
    assert queue.interact_with_object("barrel", "inspect").reason is FailureReason.UNKNOWN_TARGET
    # Registered, but as an NPC
    assert queue.interact_with_object("bard", "dialog").reason is FailureReason.UNKNOWN_TARGET
    assert queue.queued == []


def test_unsupported_interaction_rejected(queue):
    outcome = queue.interact_with_npc("bard", "trade")
    assert outcome.reason is FailureReason.UNSUPPORTED_INTERACTION
    assert queue.queued == []


def test_interactions_run_one_at_a_time_in_order(queue, bus):
    queue.interact_with_object("hearth", "inspect")
    queue.interact_with_object("hearth", "stoke")

    queue.update(1)
    assert queue.current.interaction_type == "inspect"
    queue.update(1)
    assert queue.get_interaction_history("hearth") == []

    queue.update(1)  # 3 seconds of dwell
    assert [r.interaction_type for r in queue.get_interaction_history("hearth")] == ["inspect"]
    assert queue.current.interaction_type == "stoke"

    events = bus.drain()
    assert [type(e) for e in events] == [InteractionStarted, InteractionEnded, InteractionStarted]
    assert events[1] == InteractionEnded(kind="object", target_id="hearth", interaction_type="inspect")


def test_end_records_timestamp(queue):
    queue.interact_with_object("hearth", "inspect")
    queue.update(5)

    assert queue.current is None
    assert queue.get_interaction_history("hearth") == [
        InteractionRecord(target_id="hearth", interaction_type="inspect", timestamp_ms=1000)
    ]


def test_first_greeting_is_regular_then_returning(queue, bus):
    queue.interact_with_npc("bard", "dialog")
    queue.interact_with_npc("bard", "dialog", {"topic": "greeting"})

    queue.update(3)
    queue.update(3)

    first, second = spoken(bus.drain())
    assert first.is_returning is False
    assert first.text in DIALOG_OPTIONS["greeting"]["regular"]
    assert second.is_returning is True
    assert second.text in DIALOG_OPTIONS["greeting"]["returning"]
    assert queue.has_interacted_before("bard")


def test_unpartitioned_topic_uses_whole_list(queue, bus):
    queue.interact_with_npc("bard", "dialog", {"topic": "request"})
    queue.update(0.1)

    (line,) = spoken(bus.drain())
    assert line.text in DIALOG_OPTIONS["request"]
    assert line.topic == "request"


def test_topic_with_other_partitions_uses_all_lines(queue, bus):
    queue.interact_with_npc("bard", "dialog", {"topic": "farewell"})
    queue.update(0.1)

    (line,) = spoken(bus.drain())
    farewell = DIALOG_OPTIONS["farewell"]
    assert line.text in farewell["satisfied"] + farewell["neutral"]


def test_unknown_topic_logs_error(queue, bus, log):
    queue.interact_with_npc("bard", "dialog", {"topic": "weather"})
    queue.update(0.1)

    assert spoken(bus.drain()) == []
    assert any("weather" in e.message for e in log.entries(SimLogger.ERROR))


def test_dialogue_is_reproducible_with_seed(bus, log):
    lines = []
    for _ in range(2):
        q = make_queue(bus, log, seed=123)
        for _ in range(5):
            q.interact_with_npc("bard", "dialog", {"topic": "request"})
        q.update(100)
        for _ in range(5):
            q.update(3)
        lines.append([e.text for e in spoken(bus.drain())])
    assert len(lines[0]) == 5
    assert lines[0] == lines[1]


def test_history_is_bounded(bus, log):
    queue = make_queue(bus, log, history_limit=3)
    for _ in range(5):
        queue.interact_with_object("hearth", "stoke")
    for _ in range(5):
        queue.update(3)

    history = queue.get_interaction_history("hearth")
    assert len(history) == 3
    assert [r.timestamp_ms for r in history] == [1002, 1003, 1004]


def test_state_round_trip(queue, bus, log):
    queue.interact_with_npc("bard", "dialog")
    queue.update(3)
    state = queue.get_state()

    other = make_queue(bus, log)
    other.load_state(state)
    assert other.get_state() == state
    assert other.has_interacted_before("bard")


def test_load_legacy_history_key(queue):
    queue.load_state({"interactionHistory": {"bard": [{"type": "dialog", "timestamp": 5}]}})
    assert queue.get_interaction_history("bard") == [InteractionRecord("bard", "dialog", 5)]


def test_reset_clears_queue_and_history(queue):
    queue.interact_with_object("hearth", "inspect")
    queue.update(3)
    queue.interact_with_object("hearth", "stoke")

    queue.reset()

    assert queue.queued == []
    assert queue.current is None
    assert not queue.has_interacted_before("hearth")


def test_dialogue_book_variants():
    book = DialogueBook({"greeting": {"regular": ["hi"], "returning": ["hi again"]}})
    assert book.lines_for("greeting", False) == ["hi"]
    assert book.lines_for("greeting", True) == ["hi again"]
    assert book.lines_for("missing", True) is None
