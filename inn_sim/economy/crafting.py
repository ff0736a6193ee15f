"""Crafting recipes and the production queue that turns inputs into goods."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from inn_sim.core.config import RECIPES, SECONDS_PER_MINUTE
from inn_sim.core.errors import FailureReason, Outcome
from inn_sim.core.events import (
    CraftingCompleted,
    CraftingFailed,
    CraftingStarted,
    EventBus,
)
from inn_sim.economy.resources import ResourceKey, ResourceLedger, parse_category, walk_tree
from inn_sim.viz.logger import SimLogger


@dataclass(frozen=True)
class Recipe:
    """A crafting recipe for transforming resources."""

    id: str
    name: str
    inputs: dict[ResourceKey, float]     # consumed when crafting starts
    outputs: dict[ResourceKey, float]    # credited when crafting completes
    crafting_time_minutes: float
    required_skill: Optional[str] = None
    skill_level: int = 0

    @classmethod
    def from_dict(cls, recipe_id: str, data: Mapping) -> Recipe:
        """Build a recipe from nested ``{category: {type: qty}}`` config data."""
        return cls(
            id=recipe_id,
            name=data.get("name", recipe_id),
            inputs=_keyed(data.get("inputs", {})),
            outputs=_keyed(data.get("outputs", {})),
            crafting_time_minutes=float(data.get("crafting_time_minutes", 0)),
            required_skill=data.get("required_skill"),
            skill_level=int(data.get("skill_level", 0)),
        )

    def scaled_inputs(self, quantity: int) -> dict[ResourceKey, float]:
        return {key: qty * quantity for key, qty in self.inputs.items()}

    def scaled_outputs(self, quantity: int) -> dict[ResourceKey, float]:
        return {key: qty * quantity for key, qty in self.outputs.items()}

    def skill_met(self, actor_skills: Optional[Mapping[str, int]]) -> bool:
        """No actor means no skill gate."""
        if not self.required_skill or actor_skills is None:
            return True
        return actor_skills.get(self.required_skill, 0) >= self.skill_level


def _keyed(tree: Mapping) -> dict[ResourceKey, float]:
    keyed: dict[ResourceKey, float] = {}
    for category_name, subtree in tree.items():
        category = parse_category(category_name)
        if category is None:
            raise ValueError(f"Unknown resource category in recipe: {category_name}")
        for path, qty in walk_tree(subtree):
            keyed[ResourceKey(category, path)] = float(qty)
    return keyed


@dataclass
class CraftingProcess:
    """A running crafting job."""

    recipe: Recipe
    quantity: int
    time_remaining_seconds: float


# =============================================================================
# Recipe catalog
# =============================================================================

class RecipeBook:
    """All recipes known to the inn, keyed by id."""

    def __init__(
        self,
        ledger: ResourceLedger,
        logger: Optional[SimLogger] = None,
        recipes: Optional[Mapping[str, Mapping]] = None,
    ) -> None:
        self._ledger = ledger
        self._logger = logger or SimLogger.silent()
        self._recipes: dict[str, Recipe] = {}

        for recipe_id, data in (RECIPES if recipes is None else recipes).items():
            self.add(Recipe.from_dict(recipe_id, data))

    def __contains__(self, recipe_id: str) -> bool:
        return recipe_id in self._recipes

    def __len__(self) -> int:
        return len(self._recipes)

    def get(self, recipe_id: str) -> Optional[Recipe]:
        return self._recipes.get(recipe_id)

    def all(self) -> list[Recipe]:
        return list(self._recipes.values())

    def add(self, recipe: Recipe) -> Outcome:
        """Register a recipe after checking every key against the ledger."""
        for key in list(recipe.inputs) + list(recipe.outputs):
            if not self._ledger.is_known(key):
                detail = f"Recipe {recipe.id} references unknown resource {key}"
                self._logger.log(SimLogger.ERROR, detail)
                return Outcome.failure(FailureReason.UNKNOWN_RESOURCE, detail)
        for qty in list(recipe.inputs.values()) + list(recipe.outputs.values()):
            if qty < 0:
                detail = f"Recipe {recipe.id} has a negative quantity"
                self._logger.log(SimLogger.ERROR, detail)
                return Outcome.failure(FailureReason.INVALID_AMOUNT, detail)

        self._recipes[recipe.id] = recipe
        self._logger.log(SimLogger.CRAFTING, f"Added recipe {recipe.name}")
        return Outcome.success()


# =============================================================================
# Production queue
# =============================================================================

@dataclass
class CraftingStats:
    """Running totals read by the metrics collector."""

    started: int = 0
    completed: int = 0
    failed: int = 0
    failures_by_reason: dict[str, int] = field(default_factory=dict)


class ProductionScheduler:
    """Consumes inputs up front, counts down in real seconds, credits outputs."""

    def __init__(
        self,
        ledger: ResourceLedger,
        recipes: RecipeBook,
        events: Optional[EventBus] = None,
        logger: Optional[SimLogger] = None,
    ) -> None:
        self._ledger = ledger
        self.recipes = recipes
        self._events = events
        self._logger = logger or SimLogger.silent()
        self._active: list[CraftingProcess] = []
        self.stats = CraftingStats()

    def reset(self) -> None:
        """Drop running jobs without crediting them."""
        self._active.clear()

    def add_recipe(self, recipe: Recipe) -> Outcome:
        return self.recipes.add(recipe)

    def get_active_processes(self) -> list[CraftingProcess]:
        return list(self._active)

    def get_craftable_recipes(self, actor_skills: Optional[Mapping[str, int]] = None) -> list[Recipe]:
        return [
            recipe
            for recipe in self.recipes.all()
            if recipe.skill_met(actor_skills) and self._ledger.has_enough_resources(recipe.inputs)
        ]

    def start_crafting(
        self,
        recipe_id: str,
        quantity: int = 1,
        actor_skills: Optional[Mapping[str, int]] = None,
    ) -> Outcome:
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return self._fail(FailureReason.UNKNOWN_RECIPE, None, recipe_id, f"Recipe {recipe_id} does not exist")
        if quantity < 1:
            return self._fail(
                FailureReason.INVALID_AMOUNT, recipe, recipe_id, f"Cannot craft {quantity} {recipe.name}"
            )
        if not recipe.skill_met(actor_skills):
            return self._fail(
                FailureReason.INSUFFICIENT_SKILL,
                recipe,
                recipe_id,
                f"{recipe.name} needs {recipe.required_skill} level {recipe.skill_level}",
            )

        required = recipe.scaled_inputs(quantity)
        if not self._ledger.has_enough_resources(required):
            return self._fail(
                FailureReason.INSUFFICIENT_RESOURCES, recipe, recipe_id, f"Not enough resources for {recipe.name}"
            )
        if not self._ledger.consume_resources(required):
            return self._fail(
                FailureReason.CONSUMPTION_FAILED, recipe, recipe_id, f"Could not consume inputs for {recipe.name}"
            )

        process = CraftingProcess(
            recipe=recipe,
            quantity=quantity,
            time_remaining_seconds=recipe.crafting_time_minutes * SECONDS_PER_MINUTE * quantity,
        )
        self._active.append(process)
        self.stats.started += 1
        self._logger.log(
            SimLogger.CRAFTING,
            f"Started crafting {quantity}x {recipe.name} ({process.time_remaining_seconds:g}s)",
        )
        if self._events is not None:
            self._events.publish(
                CraftingStarted(
                    recipe=recipe,
                    quantity=quantity,
                    time_remaining_seconds=process.time_remaining_seconds,
                )
            )
        return Outcome.success()

    def update(self, delta_seconds: float) -> None:
        """Count down every process and settle the finished ones."""
        finished: list[CraftingProcess] = []
        for process in self._active:
            process.time_remaining_seconds -= delta_seconds
            if process.time_remaining_seconds <= 0:
                finished.append(process)

        # Remove before crediting so a listener cannot see a settled process
        for process in finished:
            self._active.remove(process)
        for process in finished:
            self._complete(process)

    def _complete(self, process: CraftingProcess) -> None:
        recipe = process.recipe
        for key, qty in recipe.scaled_outputs(process.quantity).items():
            if qty > 0:
                self._ledger.add_resource(key.category, key.path, qty)

        self.stats.completed += 1
        self._logger.log(SimLogger.CRAFTING, f"Completed crafting {process.quantity}x {recipe.name}")
        if self._events is not None:
            self._events.publish(CraftingCompleted(recipe=recipe, quantity=process.quantity))

    def _fail(
        self,
        reason: FailureReason,
        recipe: Optional[Recipe],
        recipe_id: str,
        detail: str,
    ) -> Outcome:
        self.stats.failed += 1
        self.stats.failures_by_reason[reason.value] = self.stats.failures_by_reason.get(reason.value, 0) + 1
        self._logger.log(SimLogger.ERROR, detail, recipe_id=recipe_id, reason=reason.value)
        if self._events is not None:
            self._events.publish(CraftingFailed(reason=reason, recipe=recipe, recipe_id=recipe_id))
        return Outcome.failure(reason, detail)
