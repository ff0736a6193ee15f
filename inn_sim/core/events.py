"""Typed notifications and the synchronous bus that delivers them.

Systems publish event values; listeners registered for an event type are
called immediately, in registration order. Every published event is also
queued so a UI collaborator can drain them once per tick.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from inn_sim.viz.logger import SimLogger


@dataclass(frozen=True)
class GameEvent:
    """Base class for every notification."""


# -----------------------------------------------------------------------------
# Clock
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class HourChanged(GameEvent):
    previous_hour: int
    hour: int


@dataclass(frozen=True)
class DayChanged(GameEvent):
    previous_day: int
    day: int
    season: int
    year: int


@dataclass(frozen=True)
class SeasonChanged(GameEvent):
    previous_season: int
    season: int
    season_name: str
    year: int


# -----------------------------------------------------------------------------
# Ledger
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceChanged(GameEvent):
    category: str
    type: str
    old_amount: float
    new_amount: float
    change: float


@dataclass(frozen=True)
class ResourceLimitReached(GameEvent):
    category: str
    type: str
    limit: float


# -----------------------------------------------------------------------------
# Production
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class CraftingStarted(GameEvent):
    recipe: Any  # Recipe
    quantity: int
    time_remaining_seconds: float


@dataclass(frozen=True)
class CraftingCompleted(GameEvent):
    recipe: Any  # Recipe
    quantity: int


@dataclass(frozen=True)
class CraftingFailed(GameEvent):
    reason: Any  # FailureReason
    recipe: Any = None  # Recipe, when it was found
    recipe_id: str = ""


# -----------------------------------------------------------------------------
# Interactions
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class InteractionStarted(GameEvent):
    kind: str
    target_id: str
    interaction_type: str
    options: dict = field(default_factory=dict)


@dataclass(frozen=True)
class InteractionEnded(GameEvent):
    kind: str
    target_id: str
    interaction_type: str


@dataclass(frozen=True)
class DialogueSpoken(GameEvent):
    npc_id: str
    text: str
    topic: str
    is_returning: bool


Handler = Callable[[GameEvent], None]


class EventBus:
    """Synchronous observer registry plus a per-tick pending queue."""

    def __init__(self, logger: Optional[SimLogger] = None) -> None:
        self._subscribers: dict[type, list[Handler]] = defaultdict(list)
        self._pending: list[GameEvent] = []
        self._logger = logger or SimLogger.silent()

    @property
    def pending(self) -> list[GameEvent]:
        return self._pending

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: GameEvent) -> None:
        self._pending.append(event)
        for handler in list(self._subscribers.get(type(event), [])):
            try:
                handler(event)
            except Exception as exc:
                # A broken listener must not stop the tick
                handler_name = getattr(handler, "__qualname__", repr(handler))
                self._logger.log(
                    SimLogger.ERROR,
                    f"Listener {handler_name} failed on {type(event).__name__}: {exc!r}",
                    event_type=type(event).__name__,
                )

    def drain(self) -> list[GameEvent]:
        """Hand over every event published since the last drain."""
        events = list(self._pending)
        self._pending.clear()
        return events
