"""Player interactions with inn objects and guests, one at a time.

Requests queue up FIFO. The active interaction lasts a fixed dwell time,
then it is recorded in the target's history and the next one starts.
Dialogue lines depend on whether the guest has been spoken to before.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional

import numpy as np
from numpy.random import Generator

from inn_sim.core.config import (
    DEFAULT_DIALOG_TOPIC,
    DIALOG_INTERACTION,
    DIALOG_OPTIONS,
    FIRST_VISIT_VARIANT,
    INTERACTION_DWELL_SECONDS,
    INTERACTION_HISTORY_LIMIT,
    RETURNING_VARIANT,
)
from inn_sim.core.errors import FailureReason, Outcome
from inn_sim.core.events import (
    DialogueSpoken,
    EventBus,
    InteractionEnded,
    InteractionStarted,
)
from inn_sim.viz.logger import SimLogger

OBJECT = "object"
NPC = "npc"


@dataclass(frozen=True)
class InteractionTarget:
    """Something the player can interact with."""

    target_id: str
    kind: str  # OBJECT or NPC
    interactions: frozenset[str]
    name: str = ""


@dataclass
class InteractionRequest:
    kind: str
    target_id: str
    interaction_type: str
    options: dict = field(default_factory=dict)
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class InteractionRecord:
    target_id: str
    interaction_type: str
    timestamp_ms: int


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class DialogueBook:
    """Dialogue lines by topic, optionally split into variants."""

    def __init__(self, options: Mapping = DIALOG_OPTIONS) -> None:
        self._options = options

    def topics(self) -> list[str]:
        return list(self._options)

    def lines_for(self, topic: str, is_returning: bool) -> Optional[list[str]]:
        """Returning or regular lines if the topic is split that way, else the whole topic."""
        entry = self._options.get(topic)
        if entry is None:
            return None
        if isinstance(entry, Mapping):
            variant = RETURNING_VARIANT if is_returning else FIRST_VISIT_VARIANT
            if variant in entry:
                return list(entry[variant])
            # Partitioned some other way (e.g. satisfied / neutral)
            return [line for lines in entry.values() for line in lines]
        return list(entry)

    def pick(self, topic: str, is_returning: bool, rng: Generator) -> Optional[str]:
        lines = self.lines_for(topic, is_returning)
        if not lines:
            return None
        return lines[int(rng.integers(len(lines)))]


class InteractionQueue:
    """FIFO interaction processing with bounded per-target history."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        logger: Optional[SimLogger] = None,
        rng: Optional[Generator] = None,
        dialogue: Optional[DialogueBook] = None,
        dwell_seconds: float = INTERACTION_DWELL_SECONDS,
        history_limit: int = INTERACTION_HISTORY_LIMIT,
        now_ms: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self._events = events
        self._logger = logger or SimLogger.silent()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.dialogue = dialogue or DialogueBook()
        self.dwell_seconds = dwell_seconds
        self.history_limit = history_limit
        self._now_ms = now_ms

        self._targets: dict[str, InteractionTarget] = {}
        self._queue: deque[InteractionRequest] = deque()
        self.current: Optional[InteractionRequest] = None
        self._history: dict[str, deque[InteractionRecord]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_object(self, object_id: str, interactions: Iterable[str], name: str = "") -> None:
        self._register(InteractionTarget(object_id, OBJECT, frozenset(interactions), name))

    def register_npc(self, npc_id: str, interactions: Iterable[str], name: str = "") -> None:
        self._register(InteractionTarget(npc_id, NPC, frozenset(interactions), name))

    def _register(self, target: InteractionTarget) -> None:
        self._targets[target.target_id] = target
        self._logger.log(
            SimLogger.INTERACTION, f"Registered interactable {target.kind}: {target.target_id}"
        )

    def get_target(self, target_id: str) -> Optional[InteractionTarget]:
        return self._targets.get(target_id)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def interact_with_object(self, object_id: str, interaction_type: str) -> Outcome:
        return self._enqueue(OBJECT, object_id, interaction_type, {})

    def interact_with_npc(
        self,
        npc_id: str,
        interaction_type: str,
        options: Optional[dict] = None,
    ) -> Outcome:
        return self._enqueue(NPC, npc_id, interaction_type, dict(options or {}))

    def _enqueue(self, kind: str, target_id: str, interaction_type: str, options: dict) -> Outcome:
        target = self._targets.get(target_id)
        if target is None or target.kind != kind:
            detail = f"{kind.capitalize()} {target_id} not found"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.UNKNOWN_TARGET, detail)
        if interaction_type not in target.interactions:
            detail = f"{kind.capitalize()} {target_id} does not support interaction type {interaction_type}"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.UNSUPPORTED_INTERACTION, detail)

        self._queue.append(InteractionRequest(kind, target_id, interaction_type, options))
        self._logger.log(
            SimLogger.INTERACTION, f"Queued interaction with {kind} {target_id} ({interaction_type})"
        )
        return Outcome.success()

    @property
    def queued(self) -> list[InteractionRequest]:
        return list(self._queue)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def update(self, delta_seconds: float) -> None:
        if self.current is None and self._queue:
            self._start_next()

        if self.current is not None:
            self.current.elapsed_seconds += delta_seconds
            if self.current.elapsed_seconds >= self.dwell_seconds:
                self.end_current_interaction()

    def _start_next(self) -> None:
        if not self._queue:
            return
        request = self._queue.popleft()
        self.current = request
        self._logger.log(
            SimLogger.INTERACTION,
            f"Started interaction with {request.kind} {request.target_id} ({request.interaction_type})",
        )
        if self._events is not None:
            self._events.publish(
                InteractionStarted(
                    kind=request.kind,
                    target_id=request.target_id,
                    interaction_type=request.interaction_type,
                    options=dict(request.options),
                )
            )
        if request.kind == NPC and request.interaction_type == DIALOG_INTERACTION:
            self._start_dialog(request.target_id, request.options.get("topic", DEFAULT_DIALOG_TOPIC))

    def _start_dialog(self, npc_id: str, topic: str) -> None:
        is_returning = self.has_interacted_before(npc_id)
        text = self.dialogue.pick(topic, is_returning, self.rng)
        if text is None:
            self._logger.log(SimLogger.ERROR, f"No dialog options found for topic {topic}")
            return
        self._logger.log(SimLogger.INTERACTION, f'NPC {npc_id} says: "{text}"')
        if self._events is not None:
            self._events.publish(
                DialogueSpoken(npc_id=npc_id, text=text, topic=topic, is_returning=is_returning)
            )

    def end_current_interaction(self) -> None:
        """Record the active interaction and move on to the next one."""
        request = self.current
        if request is None:
            return
        self._record(request.target_id, request.interaction_type)
        self.current = None
        self._logger.log(
            SimLogger.INTERACTION,
            f"Ended interaction with {request.kind} {request.target_id} ({request.interaction_type})",
        )
        if self._events is not None:
            self._events.publish(
                InteractionEnded(
                    kind=request.kind,
                    target_id=request.target_id,
                    interaction_type=request.interaction_type,
                )
            )
        if self._queue:
            self._start_next()

    def reset(self) -> None:
        """Forget queued requests and history (targets stay registered)."""
        self._queue.clear()
        self.current = None
        self._history = {}

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _history_for(self, target_id: str) -> deque[InteractionRecord]:
        if target_id not in self._history:
            self._history[target_id] = deque(maxlen=self.history_limit)
        return self._history[target_id]

    def _record(self, target_id: str, interaction_type: str) -> None:
        self._history_for(target_id).append(
            InteractionRecord(target_id, interaction_type, self._now_ms())
        )

    def has_interacted_before(self, target_id: str) -> bool:
        return bool(self._history.get(target_id))

    def get_interaction_history(self, target_id: str) -> list[InteractionRecord]:
        return list(self._history.get(target_id, ()))

    def get_state(self) -> dict:
        return {
            "interaction_history": {
                target_id: [
                    {"type": record.interaction_type, "timestamp": record.timestamp_ms}
                    for record in records
                ]
                for target_id, records in self._history.items()
            }
        }

    def load_state(self, state: Optional[Mapping]) -> None:
        if not state:
            return
        history = state.get("interaction_history", state.get("interactionHistory"))
        if history is None:
            return
        self._history = {}
        for target_id, records in history.items():
            target_history = self._history_for(target_id)
            for record in records:
                target_history.append(
                    InteractionRecord(
                        target_id=target_id,
                        interaction_type=record.get("type", ""),
                        timestamp_ms=int(record.get("timestamp", 0)),
                    )
                )
        self._logger.log(SimLogger.PERSISTENCE, "Interaction state loaded")
