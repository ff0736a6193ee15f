from __future__ import annotations

import math

import numpy as np
import pytest

from inn_sim.core.errors import FailureReason
from inn_sim.core.events import ResourceChanged, ResourceLimitReached
from inn_sim.economy.resources import ResourceCategory, ResourceKey, ResourceLedger
from inn_sim.viz.logger import SimLogger

FLOUR = ResourceKey(ResourceCategory.INGREDIENTS, "flour")
WATER = ResourceKey(ResourceCategory.INGREDIENTS, "water")


def amount(ledger: ResourceLedger, category: str, resource_type: str) -> float:
    return ledger.get_resource_amount(category, resource_type)


# -----------------------------------------------------------------------------
# Credit / debit
# -----------------------------------------------------------------------------

def test_starting_stock(ledger):
    assert amount(ledger, "currency", "gold") == 100
    assert amount(ledger, "ingredients", "flour") == 10
    assert amount(ledger, "garden", "seeds.vegetable") == 5
    assert amount(ledger, "ingredients", "apples") == 0


def test_add_publishes_change(ledger, bus):
    outcome = ledger.add_resource("ingredients", "flour", 5)

    assert outcome and not outcome.hit_limit
    assert amount(ledger, "ingredients", "flour") == 15
    assert bus.drain() == [
        ResourceChanged(category="ingredients", type="flour", old_amount=10, new_amount=15, change=5)
    ]


def test_add_caps_at_category_limit(ledger, bus):
    outcome = ledger.add_resource("ingredients", "flour", 60)

    assert outcome.ok and outcome.hit_limit
    assert amount(ledger, "ingredients", "flour") == 50
    events = bus.drain()
    assert events[-1] == ResourceLimitReached(category="ingredients", type="flour", limit=50)


def test_group_default_limit_applies_to_nested_resources(ledger):
    ledger.add_resource("garden", "seeds.magical", 100)
    ledger.add_resource("garden", "water", 500)

    assert amount(ledger, "garden", "seeds.magical") == 20
    assert amount(ledger, "garden", "water") == 100
    assert ledger.get_resource_limit("garden", "seeds.herb") == 20


def test_gold_is_unlimited(ledger):
    assert math.isinf(ledger.get_resource_limit("currency", "gold"))
    assert ledger.add_resource("currency", "gold", 1e9)
    assert amount(ledger, "currency", "gold") == 1e9 + 100


@pytest.mark.parametrize("bad_amount", [0, -3])
def test_non_positive_amounts_rejected(ledger, bus, bad_amount):
    assert ledger.add_resource("ingredients", "flour", bad_amount).reason is FailureReason.INVALID_AMOUNT
    assert ledger.remove_resource("ingredients", "flour", bad_amount).reason is FailureReason.INVALID_AMOUNT
    assert amount(ledger, "ingredients", "flour") == 10
    assert bus.drain() == []


def test_unknown_resource(ledger, log):
    assert ledger.add_resource("ingredients", "unobtainium", 1).reason is FailureReason.UNKNOWN_RESOURCE
    assert ledger.add_resource("spices", "salt", 1).reason is FailureReason.UNKNOWN_RESOURCE
    assert ledger.get_resource_amount("ingredients", "unobtainium") == 0
    assert any("unobtainium" in e.message for e in log.entries(SimLogger.ERROR))


def test_remove_more_than_stock_fails_without_change(ledger):
    outcome = ledger.remove_resource("ingredients", "flour", 11)

    assert not outcome
    assert outcome.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert amount(ledger, "ingredients", "flour") == 10


def test_remove_exact_stock_reaches_zero(ledger):
    assert ledger.remove_resource("ingredients", "flour", 10)
    assert amount(ledger, "ingredients", "flour") == 0


def test_display_amount_is_floored(ledger):
    ledger.add_resource("ingredients", "flour", 0.99)
    assert ledger.display_amount("ingredients", "flour") == 10


# -----------------------------------------------------------------------------
# Requirements
# -----------------------------------------------------------------------------

def test_has_enough_nested_and_flat(ledger):
    assert ledger.has_enough_resources({"ingredients": {"flour": 10, "water": 1}})
    assert not ledger.has_enough_resources({"ingredients": {"flour": 11}})
    assert ledger.has_enough_resources({FLOUR: 2, WATER: 1})
    assert ledger.has_enough_resources({"garden": {"seeds": {"vegetable": 5}}})
    assert not ledger.has_enough_resources({"ingredients": {"unobtainium": 1}})
    assert not ledger.has_enough_resources({"spices": {"salt": 1}})


def test_consume_is_all_or_nothing(ledger, bus):
    ledger.remove_resource("ingredients", "flour", 9)
    bus.drain()

    outcome = ledger.consume_resources({"ingredients": {"water": 1, "flour": 2}})

    assert outcome.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert amount(ledger, "ingredients", "flour") == 1
    assert amount(ledger, "ingredients", "water") == 10
    assert bus.drain() == []


def test_consume_debits_every_entry(ledger, bus):
    assert ledger.consume_resources({FLOUR: 4, WATER: 2})

    assert amount(ledger, "ingredients", "flour") == 6
    assert amount(ledger, "ingredients", "water") == 8
    changes = [e for e in bus.drain() if isinstance(e, ResourceChanged)]
    assert [(e.type, e.change) for e in changes] == [("flour", -4), ("water", -2)]


def test_consume_writes_before_listeners_run(ledger, bus):
    seen = []
    bus.subscribe(
        ResourceChanged,
        lambda e: seen.append(
            (amount(ledger, "ingredients", "flour"), amount(ledger, "ingredients", "water"))
        ),
    )

    ledger.consume_resources({FLOUR: 1, WATER: 1})

    assert seen == [(9, 9), (9, 9)]


# -----------------------------------------------------------------------------
# Market
# -----------------------------------------------------------------------------

def test_buy_wood(ledger):
    outcome = ledger.buy_resource("materials", "wood", 5)

    assert outcome
    assert amount(ledger, "currency", "gold") == 85
    assert amount(ledger, "materials", "wood") == 20


def test_buy_unaffordable_changes_nothing(ledger):
    outcome = ledger.buy_resource("materials", "furniture", 5)  # 200 gold

    assert outcome.reason is FailureReason.INSUFFICIENT_RESOURCE
    assert amount(ledger, "currency", "gold") == 100
    assert amount(ledger, "materials", "furniture") == 0


def test_untraded_resource(ledger):
    assert ledger.get_market_price("garden", "water") == -1
    assert ledger.get_market_price("spices", "salt") == -1
    assert ledger.buy_resource("garden", "water", 1).reason is FailureReason.UNKNOWN_RESOURCE
    assert ledger.sell_resource("garden", "water", 1).reason is FailureReason.UNKNOWN_RESOURCE


def test_buy_refunds_gold_when_credit_fails(ledger):
    ledger.set_market_price("materials", "mithril", 10)

    outcome = ledger.buy_resource("materials", "mithril", 5)

    assert outcome.reason is FailureReason.UNKNOWN_RESOURCE
    assert amount(ledger, "currency", "gold") == 100


def test_sell_pays_half_price(ledger):
    assert not ledger.sell_resource("ingredients", "bread", 1)

    ledger.add_resource("ingredients", "bread", 4)
    assert ledger.sell_resource("ingredients", "bread", 2)

    assert amount(ledger, "ingredients", "bread") == 2
    assert amount(ledger, "currency", "gold") == 106


# -----------------------------------------------------------------------------
# Daily rates
# -----------------------------------------------------------------------------

def test_generation_is_additive(ledger):
    ledger.process_resource_generation(0.5)
    assert amount(ledger, "garden", "water") == pytest.approx(55)


def test_generation_respects_limit(ledger):
    ledger.process_resource_generation(30)
    assert amount(ledger, "garden", "water") == 100


def test_group_default_generation(ledger):
    ledger.set_generation_rate("garden", "seeds.default", 2)
    ledger.process_resource_generation(1)

    assert amount(ledger, "garden", "seeds.vegetable") == 7
    assert amount(ledger, "garden", "seeds.flower") == 2
    assert amount(ledger, "garden", "fertilizer") == 10


def test_decay_is_multiplicative(ledger):
    ledger.process_resource_consumption(1)

    assert amount(ledger, "ingredients", "flour") == pytest.approx(9)
    assert amount(ledger, "ingredients", "sugar") == pytest.approx(4.5)
    assert amount(ledger, "materials", "wood") == 15


def test_default_decay_only_hits_direct_members(ledger):
    ledger.set_consumption_rate("garden", "default", 0.5)
    ledger.process_resource_consumption(1)

    assert amount(ledger, "garden", "water") == pytest.approx(25)
    assert amount(ledger, "garden", "seeds.vegetable") == 5


def test_upkeep_is_fixed_and_clamped(ledger):
    ledger.set_upkeep_rate("materials", "wood", 4)
    ledger.process_resource_consumption(1)
    assert amount(ledger, "materials", "wood") == pytest.approx(11)

    ledger.process_resource_consumption(10)
    assert amount(ledger, "materials", "wood") == 0


def test_zero_days_does_nothing(ledger, bus):
    ledger.process_resource_generation(0)
    ledger.process_resource_consumption(0)
    assert bus.drain() == []


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

def test_lowering_limit_caps_stock(ledger):
    ledger.set_resource_limit("ingredients", "flour", 4)
    assert amount(ledger, "ingredients", "flour") == 4

    ledger.set_resource_limit("ingredients", "default", 3)
    assert amount(ledger, "ingredients", "sugar") == 3
    # A specific limit wins over the category default
    assert amount(ledger, "ingredients", "flour") == 4
    assert ledger.get_resource_limit("ingredients", "flour") == 4


def test_category_default_caps_nested_groups(ledger, bus):
    ledger.add_resource_type("garden", "tools.hammer", 40)
    ledger.add_resource("garden", "seeds.herb", 15)
    bus.drain()

    ledger.set_resource_limit("garden", "default", 10)

    assert ledger.get_resource_limit("garden", "tools.hammer") == 10
    assert amount(ledger, "garden", "tools.hammer") == 10
    # seeds keeps its own group default
    assert amount(ledger, "garden", "seeds.herb") == 15
    assert amount(ledger, "garden", "water") == 50
    changed = [e.type for e in bus.drain() if isinstance(e, ResourceChanged)]
    assert changed == ["tools.hammer"]


def test_add_resource_type(ledger):
    assert ledger.add_resource_type("materials", "mithril", 40)
    assert amount(ledger, "materials", "mithril") == 30

    assert ledger.add_resource_type("materials", "mithril", 1)
    assert amount(ledger, "materials", "mithril") == 30

    assert ledger.add_resource_type("garden", "seeds.moonflower", 2, limit=5)
    assert ledger.get_resource_limit("garden", "seeds.moonflower") == 5


@pytest.mark.parametrize(
    "category,resource_type",
    [
        ("spices", "saffron"),
        ("materials", "default"),
        ("garden", "seeds"),
        ("garden", "water.deep"),
    ],
)
def test_add_resource_type_rejects_bad_paths(ledger, category, resource_type):
    assert not ledger.add_resource_type(category, resource_type)


def test_setters_are_idempotent(ledger):
    ledger.set_market_price("materials", "wood", 7)
    ledger.set_market_price("materials", "wood", 7)
    assert ledger.get_market_price("materials", "wood") == 7


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

def test_state_round_trip(ledger, bus, log):
    ledger.buy_resource("materials", "wood", 5)
    ledger.add_resource("garden", "seeds.magical", 3)
    state = ledger.get_state()

    other = ResourceLedger(bus, log)
    other.load_state(state)
    assert other.get_state() == state


def test_get_state_is_a_copy(ledger):
    state = ledger.get_state()
    state["garden"]["seeds"]["vegetable"] = 999
    assert amount(ledger, "garden", "seeds.vegetable") == 5


def test_load_state_resets_clamps_and_registers(ledger):
    ledger.load_state({
        "ingredients": {"flour": 80, "sugar": -3},
        "materials": {"mithril": 3},
        "spices": {"saffron": 1},
    })

    assert amount(ledger, "ingredients", "flour") == 50
    assert amount(ledger, "ingredients", "sugar") == 0
    assert amount(ledger, "materials", "mithril") == 3
    assert amount(ledger, "currency", "gold") == 0


def test_load_empty_state_zeroes_every_entry(ledger):
    ledger.load_state({})

    assert ledger.keys()
    assert all(ledger.amount_of(key) == 0 for key in ledger.keys())


def test_amounts_stay_within_bounds(ledger):
    rng = np.random.default_rng(11)
    keys = ledger.keys()
    for _ in range(400):
        key = keys[int(rng.integers(len(keys)))]
        qty = float(rng.uniform(-5, 40))
        if rng.random() < 0.5:
            ledger.add_resource(key.category, key.path, qty)
        else:
            ledger.remove_resource(key.category, key.path, qty)
        if rng.random() < 0.1:
            ledger.process_resource_consumption(float(rng.uniform(0, 3)))
            ledger.process_resource_generation(float(rng.uniform(0, 3)))

    for key in ledger.keys():
        value = ledger.amount_of(key)
        assert 0 <= value <= ledger.get_resource_limit(key.category, key.path)
