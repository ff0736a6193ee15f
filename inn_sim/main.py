"""Entry point for the headless inn simulation."""

from __future__ import annotations

import argparse
import os
import time

from inn_sim.core.config import (
    BAKE_BATCH_SIZE,
    DEFAULT_SAVE_PATH,
    EVENING_MARKET_HOUR,
    GUEST_ARRIVAL_HOUR,
    GUEST_NAMES,
    HEADLESS_TICK_SECONDS,
    HEADLESS_TIME_SCALE,
    MINUTES_PER_DAY,
    MORNING_CHORES_HOUR,
    RESTOCK_FLOUR_AMOUNT,
    RESTOCK_FLOUR_BELOW,
    SELL_BREAD_ABOVE,
)
from inn_sim.core.events import HourChanged


def build_parser(description: str = "Hearth Inn Simulation") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--days", type=int, default=7, help="Number of game days to simulate")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--time-scale", type=float, default=HEADLESS_TIME_SCALE, help="Game minutes per real second")
    parser.add_argument("--step", type=float, default=HEADLESS_TICK_SECONDS, help="Real seconds per tick")
    parser.add_argument("--verbosity", type=int, default=0, choices=[0, 1, 2, 3], help="Log verbosity level")
    parser.add_argument("--output-dir", type=str, default="results", help="Output directory for results")
    parser.add_argument("--save-path", type=str, default=DEFAULT_SAVE_PATH, help="Save file location")
    parser.add_argument("--no-plots", action="store_true", help="Skip PNG chart generation")
    return parser


def _crossed(previous_hour: int, hour: int, target: int) -> bool:
    """True if moving from previous_hour to hour passed the start of target."""
    if previous_hour <= hour:
        return previous_hour < target <= hour
    # Wrapped past midnight
    return target > previous_hour or target <= hour


class InnKeeperScript:
    """A simple daily routine: restock and bake in the morning, greet guests, sell at night."""

    def __init__(self, sim: "InnSimulation") -> None:  # noqa: F821
        self.sim = sim
        self._guest_count = 0
        sim.events.subscribe(HourChanged, self.on_hour)

    def on_hour(self, event: HourChanged) -> None:
        if _crossed(event.previous_hour, event.hour, MORNING_CHORES_HOUR):
            self.morning_chores()
        if _crossed(event.previous_hour, event.hour, GUEST_ARRIVAL_HOUR):
            self.greet_guest()
        if _crossed(event.previous_hour, event.hour, EVENING_MARKET_HOUR):
            self.evening_market()

    def morning_chores(self) -> None:
        ledger = self.sim.ledger
        if ledger.get_resource_amount("ingredients", "flour") < RESTOCK_FLOUR_BELOW:
            self.sim.buy("ingredients", "flour", RESTOCK_FLOUR_AMOUNT)
        if ledger.get_resource_amount("ingredients", "water") < BAKE_BATCH_SIZE:
            self.sim.buy("ingredients", "water", RESTOCK_FLOUR_AMOUNT)
        self.sim.craft("bread", BAKE_BATCH_SIZE)

    def greet_guest(self) -> None:
        index = int(self.sim.rng.integers(len(GUEST_NAMES)))
        guest_id = f"guest{index}"
        self.sim.welcome_guest(guest_id, GUEST_NAMES[index])
        self.sim.interactions.interact_with_npc(guest_id, "dialog", {"topic": "greeting"})
        rooms = self.sim.inn.get("rooms", [])
        if rooms:
            self.sim.interactions.interact_with_object(rooms[self._guest_count % len(rooms)]["id"], "clean")
        self._guest_count += 1

    def evening_market(self) -> None:
        bread = self.sim.ledger.get_resource_amount("ingredients", "bread")
        surplus = int(bread - SELL_BREAD_ABOVE)
        if surplus > 0:
            self.sim.sell("ingredients", "bread", surplus)


def real_seconds_for(days: int, time_scale: float) -> float:
    """Real seconds needed to cover a number of game days."""
    return days * MINUTES_PER_DAY / time_scale


def main() -> None:
    args = build_parser().parse_args()

    # Import here to allow --help without loading everything
    from inn_sim.simulation.engine import InnSimulation
    from inn_sim.viz.logger import SimLogger

    print("=== Hearth Inn Simulation ===")
    print(f"Days: {args.days} | Seed: {args.seed} | Time scale: {args.time_scale}x")
    print(f"Output: {args.output_dir}")
    print()

    logger = SimLogger(
        verbosity=args.verbosity,
        log_file=os.path.join(args.output_dir, "simulation.log"),
        stdout=(args.verbosity > 0),
    )
    sim = InnSimulation(save_path=args.save_path, seed=args.seed, logger=logger)
    sim.new_game()
    sim.clock.set_time_scale(args.time_scale)
    InnKeeperScript(sim)

    real_seconds = real_seconds_for(args.days, sim.clock.time_scale)
    print(f"Running {args.days} days ({real_seconds:.0f} real seconds in {args.step:g}s ticks)...")
    t0 = time.time()
    try:
        sim.run(real_seconds, args.step)
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
    elapsed = time.time() - t0
    print(f"\nSimulation complete: {sim.clock.date_string()} in {elapsed:.2f}s")

    # Export results
    os.makedirs(args.output_dir, exist_ok=True)
    csv_path = os.path.join(args.output_dir, "metrics.csv")
    sim.metrics.export_csv(csv_path)
    print(f"Metrics exported to {csv_path}")

    if sim.save_game():
        print(f"Game saved to {args.save_path}")

    if not args.no_plots:
        from inn_sim.viz.report import comprehensive_report
        comprehensive_report(sim.metrics, args.output_dir)

    print()
    print(sim.metrics.summary_report())

    logger.export_json(os.path.join(args.output_dir, "events.json"))
    logger.close()
    print(f"\nAll results saved to {args.output_dir}/")


if __name__ == "__main__":
    main()
