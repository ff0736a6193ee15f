"""
Hearth Inn Runner
=================
Run the inn day by day with progress output, then print a summary and save charts.

Usage:
    python run_simulation.py                          # defaults: 7 days, seed 42
    python run_simulation.py --days 30 --seed 7       # custom run
    python run_simulation.py --help                   # full options
"""

from __future__ import annotations

import os
import sys
import time

# Ensure inn_sim package is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def run() -> None:
    from inn_sim.main import InnKeeperScript, build_parser, real_seconds_for
    from inn_sim.simulation.engine import InnSimulation
    from inn_sim.viz.logger import SimLogger

    args = build_parser("Hearth Inn Simulation - Run & Report").parse_args()

    # ── Banner ──────────────────────────────────────────────────────────
    print("=" * 60)
    print("  Hearth Inn Simulation")
    print("=" * 60)
    print(f"  Days       : {args.days}")
    print(f"  Seed       : {args.seed}")
    print(f"  Time scale : {args.time_scale}x")
    print(f"  Output     : {args.output_dir}/")
    print("=" * 60)
    print()

    # ── Initialize ──────────────────────────────────────────────────────
    logger = SimLogger(
        verbosity=args.verbosity,
        log_file=os.path.join(args.output_dir, "simulation.log"),
        stdout=(args.verbosity > 0),
    )
    sim = InnSimulation(save_path=args.save_path, seed=args.seed, logger=logger)
    sim.new_game()
    sim.clock.set_time_scale(args.time_scale)
    InnKeeperScript(sim)

    # ── Run one game day at a time ──────────────────────────────────────
    seconds_per_day = real_seconds_for(1, sim.clock.time_scale)
    t0 = time.time()
    try:
        for i in range(args.days):
            sim.run(seconds_per_day, args.step)
            gold = sim.ledger.get_resource_amount("currency", "gold")
            bread = sim.ledger.display_amount("ingredients", "bread")
            print(f"  Day {i + 1:>4}/{args.days}  |  {sim.clock.date_string():<28} |  Gold: {gold:7.1f}  |  Bread: {bread}")
            if args.verbosity >= 1:
                print(logger.journal(i))
    except KeyboardInterrupt:
        print("\n  Interrupted by user.")

    print(f"\nSimulation finished in {time.time() - t0:.1f}s")
    print()

    # ── Export data ─────────────────────────────────────────────────────
    os.makedirs(args.output_dir, exist_ok=True)
    sim.metrics.export_csv(os.path.join(args.output_dir, "metrics.csv"))
    sim.save_game()
    logger.export_json(os.path.join(args.output_dir, "events.json"))
    logger.close()

    print(sim.metrics.summary_report())

    # ── Save PNGs ───────────────────────────────────────────────────────
    if not args.no_plots:
        from inn_sim.viz.report import comprehensive_report
        comprehensive_report(sim.metrics, args.output_dir)


if __name__ == "__main__":
    run()
