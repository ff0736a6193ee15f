"""Daily ledger snapshots, production counts, and export."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass
from typing import Optional

from inn_sim.core.config import CURRENCY_CATEGORY, CURRENCY_TYPE
from inn_sim.economy.resources import ResourceCategory


@dataclass
class DailySnapshot:
    """A snapshot of the inn's books for one day."""

    day: int = 0
    date: str = ""
    gold: float = 0.0
    ingredients_total: float = 0.0
    materials_total: float = 0.0
    garden_total: float = 0.0
    crafts_started: int = 0
    crafts_completed: int = 0
    crafts_failed: int = 0
    trade_count: int = 0
    gold_traded: float = 0.0


class MetricsCollector:
    """Collects time-series data every game day."""

    def __init__(self) -> None:
        self.snapshots: list[DailySnapshot] = []
        self._daily_trades: int = 0
        self._daily_gold_traded: float = 0.0
        # Scheduler totals at the previous collection
        self._last_started: int = 0
        self._last_completed: int = 0
        self._last_failed: int = 0

    def record_trade(self, gold: float = 0.0) -> None:
        self._daily_trades += 1
        self._daily_gold_traded += gold

    def collect_daily(
        self,
        day: int,
        clock: "GameClock",  # noqa: F821
        ledger: "ResourceLedger",  # noqa: F821
        scheduler: "ProductionScheduler",  # noqa: F821
    ) -> DailySnapshot:
        """Collect all metrics for this day."""
        totals = {category: 0.0 for category in ResourceCategory}
        for key in ledger.keys():
            totals[key.category] += ledger.amount_of(key)

        stats = scheduler.stats
        snapshot = DailySnapshot(
            day=day,
            date=clock.date_string(),
            gold=ledger.get_resource_amount(CURRENCY_CATEGORY, CURRENCY_TYPE),
            ingredients_total=totals[ResourceCategory.INGREDIENTS],
            materials_total=totals[ResourceCategory.MATERIALS],
            garden_total=totals[ResourceCategory.GARDEN],
            crafts_started=stats.started - self._last_started,
            crafts_completed=stats.completed - self._last_completed,
            crafts_failed=stats.failed - self._last_failed,
            trade_count=self._daily_trades,
            gold_traded=self._daily_gold_traded,
        )
        self.snapshots.append(snapshot)

        # Reset daily counters
        self._last_started = stats.started
        self._last_completed = stats.completed
        self._last_failed = stats.failed
        self._daily_trades = 0
        self._daily_gold_traded = 0.0

        return snapshot

    def export_csv(self, filepath: str) -> None:
        """Export all snapshots to CSV."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "day", "date", "gold", "ingredients", "materials", "garden",
                "crafts_started", "crafts_completed", "crafts_failed",
                "trades", "gold_traded",
            ])
            for s in self.snapshots:
                writer.writerow([
                    s.day, s.date, f"{s.gold:.2f}",
                    f"{s.ingredients_total:.2f}", f"{s.materials_total:.2f}",
                    f"{s.garden_total:.2f}", s.crafts_started,
                    s.crafts_completed, s.crafts_failed,
                    s.trade_count, f"{s.gold_traded:.2f}",
                ])

    def summary_report(self, start_day: int = 0, end_day: Optional[int] = None) -> str:
        """Generate a human-readable summary of the run."""
        relevant = [
            s for s in self.snapshots
            if s.day >= start_day and (end_day is None or s.day <= end_day)
        ]
        if not relevant:
            return "No data available for the specified period."

        first = relevant[0]
        last = relevant[-1]
        total_started = sum(s.crafts_started for s in relevant)
        total_completed = sum(s.crafts_completed for s in relevant)
        total_failed = sum(s.crafts_failed for s in relevant)
        total_trades = sum(s.trade_count for s in relevant)
        total_gold_traded = sum(s.gold_traded for s in relevant)

        lines = [
            f"=== Inn Summary: Day {first.day} to Day {last.day} ===",
            f"Duration: {last.day - first.day + 1} days (ending {last.date})",
            "",
            f"Gold: {first.gold:.0f} -> {last.gold:.0f}",
            "",
            "Production:",
            f"  Crafts started: {total_started}",
            f"  Crafts completed: {total_completed}",
            f"  Crafts failed: {total_failed}",
            "",
            "Market:",
            f"  Total trades: {total_trades}",
            f"  Gold moved: {total_gold_traded:.0f}",
            f"  Avg trades/day: {total_trades / max(1, len(relevant)):.1f}",
            "",
            "Final Stock:",
            f"  Ingredients: {last.ingredients_total:.1f}",
            f"  Materials: {last.materials_total:.1f}",
            f"  Garden: {last.garden_total:.1f}",
        ]
        return "\n".join(lines)
