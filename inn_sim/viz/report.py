"""Static matplotlib charts of a headless inn run."""

from __future__ import annotations

import os

import matplotlib
matplotlib.use("Agg")  # Headless backend
import matplotlib.pyplot as plt

from inn_sim.core.config import REPORT_DPI


def comprehensive_report(metrics: "MetricsCollector", output_dir: str) -> list[str]:  # noqa: F821
    """Generate all plots and save to output directory. Returns the written paths."""
    os.makedirs(output_dir, exist_ok=True)

    snapshots = metrics.snapshots
    if not snapshots:
        return []

    days = [s.day for s in snapshots]
    written: list[str] = []

    def save(fig, filename: str) -> None:
        path = os.path.join(output_dir, filename)
        fig.savefig(path, dpi=REPORT_DPI)
        plt.close(fig)
        written.append(path)

    # Gold over time
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(days, [s.gold for s in snapshots], color="goldenrod")
    ax.set_title("Gold Over Time")
    ax.set_xlabel("Day")
    ax.set_ylabel("Gold")
    ax.grid(True, alpha=0.3)
    save(fig, "gold.png")

    # Stock by category
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(days, [s.ingredients_total for s in snapshots], label="Ingredients")
    ax.plot(days, [s.materials_total for s in snapshots], label="Materials")
    ax.plot(days, [s.garden_total for s in snapshots], label="Garden")
    ax.set_title("Stock Over Time")
    ax.set_xlabel("Day")
    ax.set_ylabel("Units")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)
    save(fig, "stock.png")

    # Production
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(days, [s.crafts_started for s in snapshots], "b-", label="Started")
    ax.plot(days, [s.crafts_completed for s in snapshots], "g-", label="Completed")
    ax.plot(days, [s.crafts_failed for s in snapshots], "r--", label="Failed")
    ax.set_title("Crafting per Day")
    ax.set_xlabel("Day")
    ax.set_ylabel("Crafts")
    ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)
    save(fig, "crafting.png")

    # Trade volume
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(days, [s.trade_count for s in snapshots], "c-")
    ax.set_title("Trade Volume Over Time")
    ax.set_xlabel("Day")
    ax.set_ylabel("Trades per Day")
    ax.grid(True, alpha=0.3)
    save(fig, "trade_volume.png")

    print(f"Reports saved to {output_dir}/")
    return written
