from __future__ import annotations

import pytest

from inn_sim.core.events import EventBus
from inn_sim.economy.crafting import ProductionScheduler, RecipeBook
from inn_sim.economy.resources import ResourceLedger
from inn_sim.viz.logger import SimLogger


@pytest.fixture
def log() -> SimLogger:
    return SimLogger.silent()


@pytest.fixture
def bus(log: SimLogger) -> EventBus:
    return EventBus(log)


@pytest.fixture
def ledger(bus: EventBus, log: SimLogger) -> ResourceLedger:
    """Ledger stocked with the new-game starting resources."""
    ledger = ResourceLedger(bus, log)
    ledger.initialize_resources()
    bus.drain()
    return ledger


@pytest.fixture
def scheduler(ledger: ResourceLedger, bus: EventBus, log: SimLogger) -> ProductionScheduler:
    return ProductionScheduler(ledger, RecipeBook(ledger, log), bus, log)
