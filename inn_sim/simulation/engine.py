"""Composition root: owns every system and drives the per-tick update order."""

from __future__ import annotations

import copy
from typing import Optional

import numpy as np
from numpy.random import Generator

from inn_sim.core.clock import GameClock
from inn_sim.core.config import (
    AUTOSAVE_INTERVAL_SECONDS,
    DEFAULT_SAVE_PATH,
    DEFAULT_TICK_SECONDS,
    DEFAULT_TIME_SCALE,
    GUEST_INTERACTIONS,
    INITIAL_INN,
    INITIAL_PLAYER,
    ROOM_INTERACTIONS,
)
from inn_sim.core.errors import Outcome
from inn_sim.core.events import EventBus, GameEvent
from inn_sim.economy.crafting import ProductionScheduler, RecipeBook
from inn_sim.economy.resources import ResourceLedger
from inn_sim.persistence.save_store import SaveStore
from inn_sim.simulation.metrics import MetricsCollector
from inn_sim.social.interactions import InteractionQueue
from inn_sim.viz.logger import SimLogger


class InnSimulation:
    """Orchestrates the whole inn."""

    def __init__(
        self,
        save_path: Optional[str] = None,
        seed: int = 42,
        logger: Optional[SimLogger] = None,
        autosave_interval: Optional[float] = AUTOSAVE_INTERVAL_SECONDS,
    ) -> None:
        self.rng: Generator = np.random.default_rng(seed)
        self.logger = logger or SimLogger.silent()

        # Core systems
        self.events = EventBus(self.logger)
        self.clock = GameClock(self.events, self.logger)

        # Economy
        self.ledger = ResourceLedger(self.events, self.logger)
        self.recipes = RecipeBook(self.ledger, self.logger)
        self.scheduler = ProductionScheduler(self.ledger, self.recipes, self.events, self.logger)

        # Social
        self.interactions = InteractionQueue(self.events, self.logger, rng=self.rng)

        # Persistence and bookkeeping
        self.save_store = SaveStore(save_path or DEFAULT_SAVE_PATH, self.logger)
        self.metrics = MetricsCollector()
        self.autosave_interval = autosave_interval

        # Game data that only the save file cares about
        self.player: dict = {}
        self.inn: dict = {}
        self.guests: list[dict] = []

        self.real_seconds: float = 0.0
        self._since_autosave: float = 0.0
        self._day_index: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def new_game(self) -> None:
        self.player = copy.deepcopy(INITIAL_PLAYER)
        self.inn = copy.deepcopy(INITIAL_INN)
        self.guests = []

        self.clock.set_initial_time()
        self.clock.set_time_scale(DEFAULT_TIME_SCALE)
        self.ledger.initialize_resources()
        self.interactions.reset()
        self.scheduler.reset()
        self._register_interactables()
        self._reset_day_tracking()
        self.logger.log(SimLogger.EVENT, f"{self.inn['name']} opens its doors")

    def load_game(self) -> bool:
        """Restore from the save file, or start fresh when there is none."""
        data = self.save_store.load_game()
        if data is None:
            self.new_game()
            return False
        self.restore(data)
        return True

    def start(self) -> bool:
        return self.load_game()

    def save_game(self) -> bool:
        return self.save_store.save_game(self.snapshot())

    def snapshot(self) -> dict:
        """Everything that persists. Running crafting jobs are not saved."""
        return {
            "player": copy.deepcopy(self.player),
            "inn": copy.deepcopy(self.inn),
            "guests": copy.deepcopy(self.guests),
            "time": self.clock.get_state(),
            "resources": self.ledger.get_state(),
            "interactions": self.interactions.get_state(),
        }

    def restore(self, data: dict) -> None:
        self.player = copy.deepcopy(data.get("player") or INITIAL_PLAYER)
        self.inn = copy.deepcopy(data.get("inn") or INITIAL_INN)
        self.guests = copy.deepcopy(data.get("guests") or [])

        self.interactions.reset()
        self.scheduler.reset()
        self.clock.load_state(data.get("time") or {})
        self.ledger.load_state(data.get("resources") or {})
        self.interactions.load_state(data.get("interactions"))
        self._register_interactables()
        self._reset_day_tracking()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, delta_seconds: float) -> list[GameEvent]:
        """Advance every system by real elapsed seconds; return this tick's events."""
        # 1. Clock
        game_days = self.clock.update(delta_seconds)

        # 2. Ledger rates for the elapsed game time
        if game_days > 0:
            self.ledger.process_resource_generation(game_days)
            self.ledger.process_resource_consumption(game_days)

        # 3. Production runs on real time, even while the clock is paused
        self.scheduler.update(delta_seconds)

        # 4. Interactions
        self.interactions.update(delta_seconds)

        # 5. Day rollover bookkeeping
        day_index = self.clock.total_days()
        if day_index != self._day_index:
            self.metrics.collect_daily(day_index, self.clock, self.ledger, self.scheduler)
            self.logger.flush_day()
            self._day_index = day_index
            self.logger.day = day_index

        # 6. Autosave
        self.real_seconds += delta_seconds
        if self.autosave_interval is not None:
            self._since_autosave += delta_seconds
            if self._since_autosave >= self.autosave_interval:
                self._since_autosave = 0.0
                self.logger.log(SimLogger.PERSISTENCE, "Auto-save triggered")
                self.save_game()

        return self.events.drain()

    def run(self, real_seconds: float, step: float = DEFAULT_TICK_SECONDS) -> None:
        """Tick in fixed steps until ``real_seconds`` have elapsed."""
        remaining = real_seconds
        while remaining > 1e-9:
            delta = min(step, remaining)
            self.tick(delta)
            remaining -= delta
        self.logger.flush_day()

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def craft(self, recipe_id: str, quantity: int = 1) -> Outcome:
        return self.scheduler.start_crafting(recipe_id, quantity, self.player.get("skills", {}))

    def buy(self, category: str, resource_type: str, amount: float) -> Outcome:
        price = self.ledger.get_market_price(category, resource_type)
        outcome = self.ledger.buy_resource(category, resource_type, amount)
        if outcome:
            self.metrics.record_trade(gold=price * amount)
        return outcome

    def sell(self, category: str, resource_type: str, amount: float) -> Outcome:
        price = self.ledger.get_market_price(category, resource_type) * self.ledger.sell_price_multiplier
        outcome = self.ledger.sell_resource(category, resource_type, amount)
        if outcome:
            self.metrics.record_trade(gold=price * amount)
        return outcome

    def welcome_guest(self, guest_id: str, name: str) -> None:
        """Seat a guest and make them available for conversation."""
        if not any(guest.get("id") == guest_id for guest in self.guests):
            self.guests.append({"id": guest_id, "name": name})
        self.interactions.register_npc(guest_id, GUEST_INTERACTIONS, name=name)
        self.logger.log(SimLogger.EVENT, f"{name} arrives at the inn")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _register_interactables(self) -> None:
        for room in self.inn.get("rooms", []):
            self.interactions.register_object(room["id"], ROOM_INTERACTIONS, name=room.get("name", ""))
        for guest in self.guests:
            self.interactions.register_npc(guest["id"], GUEST_INTERACTIONS, name=guest.get("name", ""))

    def _reset_day_tracking(self) -> None:
        self._day_index = self.clock.total_days()
        self.logger.day = self._day_index
        self._since_autosave = 0.0
