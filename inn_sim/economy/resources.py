"""The inn's resource ledger: typed stock, storage limits, daily rates, market trade.

Every quantity in the game lives here. Crafting and market code never touch
amounts directly; they go through the debit/credit operations below so the
``0 <= amount <= limit`` invariant is enforced in one place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional, Union

from inn_sim.core.config import (
    CONSUMPTION_RATES,
    CURRENCY_CATEGORY,
    CURRENCY_TYPE,
    GENERATION_RATES,
    MARKET_PRICES,
    RESOURCE_LIMITS,
    RESOURCE_REGISTRY,
    SELL_PRICE_MULTIPLIER,
    STARTING_RESOURCES,
    UPKEEP_RATES,
)
from inn_sim.core.errors import FailureReason, Outcome
from inn_sim.core.events import EventBus, ResourceChanged, ResourceLimitReached
from inn_sim.viz.logger import SimLogger

DEFAULT_KEY = "default"
UNLIMITED = math.inf


class ResourceCategory(Enum):
    CURRENCY = "currency"
    INGREDIENTS = "ingredients"
    MATERIALS = "materials"
    GARDEN = "garden"


@dataclass(frozen=True)
class ResourceKey:
    """A (category, type) pair. ``path`` is dotted for grouped resources."""

    category: ResourceCategory
    path: str

    @property
    def group(self) -> tuple[str, ...]:
        return tuple(self.path.split(".")[:-1])

    @property
    def name(self) -> str:
        return self.path.split(".")[-1]

    @property
    def scope(self) -> Scope:
        """The group this resource belongs to."""
        return (self.category, self.group)

    def __str__(self) -> str:
        return f"{self.category.value}.{self.path}"


# A resource group: the category plus the path of enclosing sub-groups.
Scope = tuple[ResourceCategory, tuple[str, ...]]

CategoryLike = Union[ResourceCategory, str]
Requirements = Union[Mapping[ResourceKey, float], Mapping[str, Mapping]]


def parse_category(category: CategoryLike) -> Optional[ResourceCategory]:
    if isinstance(category, ResourceCategory):
        return category
    try:
        return ResourceCategory(category)
    except ValueError:
        return None


def walk_tree(tree: Mapping, prefix: str = "") -> Iterator[tuple[str, object]]:
    """Yield (dotted_path, leaf_value) pairs of a nested mapping."""
    for name, value in tree.items():
        path = f"{prefix}.{name}" if prefix else str(name)
        if isinstance(value, Mapping):
            yield from walk_tree(value, path)
        else:
            yield path, value


def _split_default(path: str) -> Optional[tuple[str, ...]]:
    """Return the group for a ``...default`` path, or None for a specific path."""
    parts = path.split(".")
    if parts[-1] == DEFAULT_KEY:
        return tuple(parts[:-1])
    return None


class ResourceLedger:
    """Owns every resource amount and the configuration that governs it."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        logger: Optional[SimLogger] = None,
        registry: Mapping = RESOURCE_REGISTRY,
        limits: Mapping = RESOURCE_LIMITS,
        generation_rates: Mapping = GENERATION_RATES,
        consumption_rates: Mapping = CONSUMPTION_RATES,
        upkeep_rates: Mapping = UPKEEP_RATES,
        market_prices: Mapping = MARKET_PRICES,
        sell_price_multiplier: float = SELL_PRICE_MULTIPLIER,
    ) -> None:
        self._events = events
        self._logger = logger or SimLogger.silent()
        self.sell_price_multiplier = sell_price_multiplier

        self._amounts: dict[ResourceKey, float] = {}
        self._limits: dict[ResourceKey, float] = {}
        self._default_limits: dict[Scope, float] = {}
        self._generation: dict[ResourceKey, float] = {}
        self._default_generation: dict[Scope, float] = {}
        self._consumption: dict[ResourceKey, float] = {}
        self._default_consumption: dict[Scope, float] = {}
        self._upkeep: dict[ResourceKey, float] = {}
        self._market_prices: dict[ResourceKey, float] = {}

        for category_name, tree in registry.items():
            category = ResourceCategory(category_name)
            for path, amount in walk_tree(tree):
                self._amounts[ResourceKey(category, path)] = float(amount)

        self._load_table(limits, self._limits, self._default_limits)
        self._load_table(generation_rates, self._generation, self._default_generation)
        self._load_table(consumption_rates, self._consumption, self._default_consumption)
        self._load_table(upkeep_rates, self._upkeep, None)
        self._load_table(market_prices, self._market_prices, None)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, category: CategoryLike, resource_type: str) -> Optional[ResourceKey]:
        """Typed key for a registered resource, or None."""
        parsed = parse_category(category)
        if parsed is None:
            return None
        key = ResourceKey(parsed, resource_type)
        return key if key in self._amounts else None

    def is_known(self, key: ResourceKey) -> bool:
        return key in self._amounts

    def keys(self) -> list[ResourceKey]:
        return list(self._amounts)

    def amount_of(self, key: ResourceKey) -> float:
        return self._amounts.get(key, 0.0)

    def get_resource_amount(self, category: CategoryLike, resource_type: str) -> float:
        key = self.resolve(category, resource_type)
        if key is None:
            self._logger.log(
                SimLogger.ERROR,
                f"Resource {_label(category, resource_type)} does not exist",
            )
            return 0.0
        return self._amounts[key]

    def display_amount(self, category: CategoryLike, resource_type: str) -> int:
        """Amount as shown to the player (floored)."""
        return math.floor(self.get_resource_amount(category, resource_type))

    def get_category_resources(self, category: CategoryLike) -> dict:
        parsed = parse_category(category)
        if parsed is None:
            self._logger.log(SimLogger.ERROR, f"Resource category {category} does not exist")
            return {}
        tree: dict = {}
        for key, amount in self._amounts.items():
            if key.category is parsed:
                _insert(tree, key.path, amount)
        return tree

    def get_resource_limit(self, category: CategoryLike, resource_type: str) -> float:
        parsed = parse_category(category)
        if parsed is None:
            return UNLIMITED
        return self._limit_for(ResourceKey(parsed, resource_type))

    def _limit_for(self, key: ResourceKey) -> float:
        if key in self._limits:
            return self._limits[key]
        # Innermost group default first, category default last
        group = key.group
        for depth in range(len(group), -1, -1):
            scope = (key.category, group[:depth])
            if scope in self._default_limits:
                return self._default_limits[scope]
        return UNLIMITED

    # ------------------------------------------------------------------
    # Credit / debit
    # ------------------------------------------------------------------

    def add_resource(self, category: CategoryLike, resource_type: str, amount: float) -> Outcome:
        """Credit a resource, capped at its limit."""
        key = self.resolve(category, resource_type)
        if key is None:
            return self._unknown(category, resource_type)
        if not amount > 0:
            return self._invalid_amount(amount)

        current = self._amounts[key]
        limit = self._limit_for(key)
        new_amount = min(current + amount, limit)
        self._amounts[key] = new_amount
        self._publish_change(key, current, new_amount)

        if new_amount == limit:
            self._logger.log(
                SimLogger.RESOURCE, f"{key} is at maximum capacity ({limit:g})"
            )
            if self._events is not None:
                self._events.publish(
                    ResourceLimitReached(
                        category=key.category.value, type=key.path, limit=limit
                    )
                )
            return Outcome.success(hit_limit=True)

        self._logger.log(
            SimLogger.RESOURCE, f"Added {amount:g} {key}, now have {new_amount:g}"
        )
        return Outcome.success()

    def remove_resource(self, category: CategoryLike, resource_type: str, amount: float) -> Outcome:
        """Debit a resource. Never lets an amount go negative."""
        key = self.resolve(category, resource_type)
        if key is None:
            return self._unknown(category, resource_type)
        if not amount > 0:
            return self._invalid_amount(amount)

        current = self._amounts[key]
        if current < amount:
            detail = f"Not enough {key} (have {current:g}, need {amount:g})"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.INSUFFICIENT_RESOURCE, detail)

        new_amount = current - amount
        self._amounts[key] = new_amount
        self._publish_change(key, current, new_amount)
        self._logger.log(
            SimLogger.RESOURCE, f"Removed {amount:g} {key}, now have {new_amount:g}"
        )
        return Outcome.success()

    # ------------------------------------------------------------------
    # Multi-resource requirements
    # ------------------------------------------------------------------

    def flatten_requirements(self, requirements: Requirements) -> dict[ResourceKey, float]:
        """Normalize nested ``{category: {type: qty}}`` maps into typed keys.

        Unknown categories map to a key that is never registered, so they
        are reported as unavailable rather than silently dropped.
        """
        flat: dict[ResourceKey, float] = {}
        for outer, inner in requirements.items():
            if isinstance(outer, ResourceKey):
                flat[outer] = flat.get(outer, 0.0) + float(inner)
                continue
            category = parse_category(outer)
            for path, qty in walk_tree(inner):
                if category is None:
                    key = ResourceKey(ResourceCategory.CURRENCY, f"?{outer}.{path}")
                else:
                    key = ResourceKey(category, path)
                flat[key] = flat.get(key, 0.0) + float(qty)
        return flat

    def has_enough_resources(self, requirements: Requirements) -> bool:
        return self._has_enough(self.flatten_requirements(requirements))

    def _has_enough(self, plan: Mapping[ResourceKey, float]) -> bool:
        for key, required in plan.items():
            if required <= 0:
                continue
            if key not in self._amounts or self._amounts[key] < required:
                return False
        return True

    def consume_resources(self, requirements: Requirements) -> Outcome:
        """Debit every requirement, or nothing at all."""
        plan = self.flatten_requirements(requirements)
        if not self._has_enough(plan):
            self._logger.log(SimLogger.ERROR, "Not enough resources")
            return Outcome.failure(FailureReason.INSUFFICIENT_RESOURCE, "Not enough resources")

        # Re-verify each entry against the amount about to be written, then
        # apply all writes before any listener runs.
        debits: list[tuple[ResourceKey, float, float]] = []
        for key, required in plan.items():
            if required <= 0:
                continue
            current = self._amounts[key]
            if current < required:
                detail = f"Not enough {key} (have {current:g}, need {required:g})"
                self._logger.log(SimLogger.ERROR, detail)
                return Outcome.failure(FailureReason.INSUFFICIENT_RESOURCE, detail)
            debits.append((key, current, current - required))

        for key, _, new_amount in debits:
            self._amounts[key] = new_amount
        for key, old_amount, new_amount in debits:
            self._publish_change(key, old_amount, new_amount)
            self._logger.log(
                SimLogger.RESOURCE,
                f"Consumed {old_amount - new_amount:g} {key}, now have {new_amount:g}",
            )
        return Outcome.success()

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def get_market_price(self, category: CategoryLike, resource_type: str) -> float:
        """Unit buy price, or -1 if the market does not trade it."""
        parsed = parse_category(category)
        if parsed is None:
            return -1.0
        return self._market_prices.get(ResourceKey(parsed, resource_type), -1.0)

    def buy_resource(self, category: CategoryLike, resource_type: str, amount: float) -> Outcome:
        unit_price = self.get_market_price(category, resource_type)
        if unit_price < 0:
            detail = f"Resource {_label(category, resource_type)} is not available in the market"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.UNKNOWN_RESOURCE, detail)
        if not amount > 0:
            return self._invalid_amount(amount)

        total_cost = unit_price * amount
        if total_cost > 0:
            paid = self.remove_resource(CURRENCY_CATEGORY, CURRENCY_TYPE, total_cost)
            if not paid:
                return paid

        received = self.add_resource(category, resource_type, amount)
        if not received:
            if total_cost > 0:
                # Refund so gold is never lost
                self.add_resource(CURRENCY_CATEGORY, CURRENCY_TYPE, total_cost)
            return received

        self._logger.log(
            SimLogger.MARKET,
            f"Bought {amount:g} {_label(category, resource_type)} for {total_cost:g} gold",
        )
        return received

    def sell_resource(self, category: CategoryLike, resource_type: str, amount: float) -> Outcome:
        buy_price = self.get_market_price(category, resource_type)
        if buy_price < 0:
            detail = f"Resource {_label(category, resource_type)} cannot be sold to the market"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.UNKNOWN_RESOURCE, detail)

        sold = self.remove_resource(category, resource_type, amount)
        if not sold:
            return sold

        total_price = buy_price * self.sell_price_multiplier * amount
        if total_price > 0:
            self.add_resource(CURRENCY_CATEGORY, CURRENCY_TYPE, total_price)
        self._logger.log(
            SimLogger.MARKET,
            f"Sold {amount:g} {_label(category, resource_type)} for {total_price:g} gold",
        )
        return Outcome.success()

    # ------------------------------------------------------------------
    # Daily rates
    # ------------------------------------------------------------------

    def process_resource_generation(self, game_days_elapsed: float) -> None:
        """Additive generation: ``rate * days`` per resource."""
        if game_days_elapsed <= 0:
            return
        for scope, rate in list(self._default_generation.items()):
            for key in self._members(scope):
                self._generate(key, rate * game_days_elapsed)
        for key, rate in list(self._generation.items()):
            if key in self._amounts:
                self._generate(key, rate * game_days_elapsed)

    def process_resource_consumption(self, game_days_elapsed: float) -> None:
        """Multiplicative decay (``amount * rate * days``) plus fixed upkeep."""
        if game_days_elapsed <= 0:
            return
        for scope, rate in list(self._default_consumption.items()):
            for key in self._members(scope):
                current = self._amounts[key]
                self._deplete(key, current * rate * game_days_elapsed)
        for key, rate in list(self._consumption.items()):
            if key in self._amounts:
                current = self._amounts[key]
                self._deplete(key, current * rate * game_days_elapsed)
        for key, rate in list(self._upkeep.items()):
            if key in self._amounts:
                self._deplete(key, rate * game_days_elapsed)

    def _generate(self, key: ResourceKey, amount: float) -> None:
        # Skip stock already at capacity so a full store does not spam events
        if amount > 0 and self._amounts[key] < self._limit_for(key):
            self.add_resource(key.category, key.path, amount)

    def _deplete(self, key: ResourceKey, amount: float) -> None:
        current = self._amounts[key]
        if amount > 0 and current > 0:
            self.remove_resource(key.category, key.path, min(amount, current))

    def _members(self, scope: Scope) -> list[ResourceKey]:
        """Direct members of a group (sub-groups excluded)."""
        return [key for key in self._amounts if key.scope == scope]

    # ------------------------------------------------------------------
    # Dynamic configuration
    # ------------------------------------------------------------------

    def add_resource_type(
        self,
        category: CategoryLike,
        resource_type: str,
        initial_amount: float = 0.0,
        limit: Optional[float] = None,
    ) -> Outcome:
        parsed = parse_category(category)
        if parsed is None:
            return self._unknown(category, resource_type)
        if initial_amount < 0:
            return self._invalid_amount(initial_amount)
        key = ResourceKey(parsed, resource_type)
        if not self._valid_new_path(key):
            detail = f"Resource {key} conflicts with an existing resource or group"
            self._logger.log(SimLogger.ERROR, detail)
            return Outcome.failure(FailureReason.UNKNOWN_RESOURCE, detail)

        if limit is not None:
            self.set_resource_limit(parsed, resource_type, limit)
        if key in self._amounts:
            return Outcome.success()

        self._amounts[key] = min(float(initial_amount), self._limit_for(key))
        self._logger.log(
            SimLogger.RESOURCE,
            f"Added new resource type {key} with initial amount {self._amounts[key]:g}",
        )
        return Outcome.success()

    def set_resource_limit(self, category: CategoryLike, resource_type: str, limit: float) -> Outcome:
        parsed = parse_category(category)
        if parsed is None:
            return self._unknown(category, resource_type)

        default_group = _split_default(resource_type)
        if default_group is not None:
            scope = (parsed, default_group)
            self._default_limits[scope] = limit
            # Reaches nested groups that have no default of their own
            affected = [k for k in self._amounts if k.category is parsed]
        else:
            key = ResourceKey(parsed, resource_type)
            self._limits[key] = limit
            affected = [key] if key in self._amounts else []
        self._logger.log(
            SimLogger.RESOURCE, f"Set {_label(parsed, resource_type)} limit to {limit:g}"
        )

        for key in affected:
            current = self._amounts[key]
            cap = self._limit_for(key)
            if current > cap:
                self._amounts[key] = cap
                self._publish_change(key, current, cap)
                self._logger.log(SimLogger.RESOURCE, f"Capped {key} to new limit of {cap:g}")
        return Outcome.success()

    def set_generation_rate(self, category: CategoryLike, resource_type: str, rate: float) -> Outcome:
        return self._set_rate(category, resource_type, rate, self._generation, self._default_generation, "generation")

    def set_consumption_rate(self, category: CategoryLike, resource_type: str, rate: float) -> Outcome:
        return self._set_rate(category, resource_type, rate, self._consumption, self._default_consumption, "consumption")

    def set_upkeep_rate(self, category: CategoryLike, resource_type: str, rate: float) -> Outcome:
        return self._set_rate(category, resource_type, rate, self._upkeep, None, "upkeep")

    def set_market_price(self, category: CategoryLike, resource_type: str, price: float) -> Outcome:
        parsed = parse_category(category)
        if parsed is None:
            return self._unknown(category, resource_type)
        self._market_prices[ResourceKey(parsed, resource_type)] = price
        self._logger.log(
            SimLogger.MARKET, f"Set {_label(parsed, resource_type)} market price to {price:g}"
        )
        return Outcome.success()

    def _set_rate(
        self,
        category: CategoryLike,
        resource_type: str,
        rate: float,
        specific: dict[ResourceKey, float],
        defaults: Optional[dict[Scope, float]],
        label: str,
    ) -> Outcome:
        parsed = parse_category(category)
        if parsed is None:
            return self._unknown(category, resource_type)
        default_group = _split_default(resource_type)
        if default_group is not None and defaults is not None:
            defaults[(parsed, default_group)] = rate
        else:
            specific[ResourceKey(parsed, resource_type)] = rate
        self._logger.log(
            SimLogger.RESOURCE,
            f"Set {_label(parsed, resource_type)} {label} rate to {rate:g} per day",
        )
        return Outcome.success()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def initialize_resources(self, starting: Mapping = STARTING_RESOURCES) -> None:
        """Stock the ledger for a new game."""
        for key in self._amounts:
            self._amounts[key] = 0.0
        self._apply_tree(starting)
        self._logger.log(SimLogger.RESOURCE, "Resources initialized for new game")

    def get_state(self) -> dict:
        """Deep copy of every amount as a nested ``{category: {type: amount}}`` tree."""
        state: dict = {category.value: {} for category in ResourceCategory}
        for key, amount in self._amounts.items():
            _insert(state[key.category.value], key.path, amount)
        return state

    def load_state(self, state: Optional[Mapping]) -> None:
        """Replace every amount with the snapshot's values (missing ones become 0)."""
        if state is None:
            return
        for key in self._amounts:
            self._amounts[key] = 0.0
        self._apply_tree(state, register_unknown=True)
        self._logger.log(SimLogger.PERSISTENCE, "Resource state loaded")

    def _apply_tree(self, tree: Mapping, register_unknown: bool = False) -> None:
        for category_name, subtree in tree.items():
            category = parse_category(category_name)
            if category is None or not isinstance(subtree, Mapping):
                self._logger.log(
                    SimLogger.ERROR, f"Resource category {category_name} does not exist"
                )
                continue
            for path, value in walk_tree(subtree):
                key = ResourceKey(category, path)
                if not isinstance(value, (int, float)) or isinstance(value, bool):
                    self._logger.log(SimLogger.ERROR, f"Ignoring non-numeric amount for {key}")
                    continue
                if key not in self._amounts:
                    if not register_unknown or not self._valid_new_path(key):
                        self._logger.log(SimLogger.ERROR, f"Resource {key} does not exist")
                        continue
                self._amounts[key] = min(max(float(value), 0.0), self._limit_for(key))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_table(
        self,
        table: Mapping,
        specific: dict[ResourceKey, float],
        defaults: Optional[dict[Scope, float]],
    ) -> None:
        for category_name, tree in table.items():
            category = ResourceCategory(category_name)
            for path, value in walk_tree(tree):
                default_group = _split_default(path)
                if default_group is not None and defaults is not None:
                    defaults[(category, default_group)] = float(value)
                else:
                    specific[ResourceKey(category, path)] = float(value)

    def _valid_new_path(self, key: ResourceKey) -> bool:
        parts = key.path.split(".")
        if any(not part for part in parts) or parts[-1] == DEFAULT_KEY:
            return False
        for existing in self._amounts:
            if existing.category is not key.category or existing == key:
                continue
            # A leaf cannot also be a group, nor live inside a leaf
            if existing.path.startswith(key.path + ".") or key.path.startswith(existing.path + "."):
                return False
        return True

    def _publish_change(self, key: ResourceKey, old_amount: float, new_amount: float) -> None:
        if self._events is None:
            return
        self._events.publish(
            ResourceChanged(
                category=key.category.value,
                type=key.path,
                old_amount=old_amount,
                new_amount=new_amount,
                change=new_amount - old_amount,
            )
        )

    def _unknown(self, category: CategoryLike, resource_type: str) -> Outcome:
        detail = f"Resource {_label(category, resource_type)} does not exist"
        self._logger.log(SimLogger.ERROR, detail)
        return Outcome.failure(FailureReason.UNKNOWN_RESOURCE, detail)

    def _invalid_amount(self, amount: float) -> Outcome:
        detail = f"Amount must be positive (got {amount})"
        self._logger.log(SimLogger.ERROR, detail)
        return Outcome.failure(FailureReason.INVALID_AMOUNT, detail)


def _label(category: CategoryLike, resource_type: str) -> str:
    name = category.value if isinstance(category, ResourceCategory) else category
    return f"{name}.{resource_type}"


def _insert(tree: dict, path: str, value: float) -> None:
    parts = path.split(".")
    node = tree
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value
