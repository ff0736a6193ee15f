from __future__ import annotations

import pytest

from inn_sim.main import InnKeeperScript, _crossed, build_parser, real_seconds_for
from inn_sim.simulation.engine import InnSimulation


@pytest.mark.parametrize(
    "previous,current,target,expected",
    [
        (6, 7, 7, True),
        (7, 8, 7, False),
        (5, 9, 7, True),
        (23, 0, 0, True),
        (22, 3, 1, True),
        (22, 3, 12, False),
    ],
)
def test_crossed(previous, current, target, expected):
    assert _crossed(previous, current, target) is expected


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.days == 7
    assert args.time_scale == 1.0
    assert args.step == 5.0
    assert args.no_plots is False


def test_real_seconds_for_days():
    assert real_seconds_for(1, 60.0) == 24
    assert real_seconds_for(3, 1.0) == 4320


def test_scripted_inn_bakes_and_greets(tmp_path):
    sim = InnSimulation(save_path=str(tmp_path / "save.json"), seed=5, autosave_interval=None)
    sim.new_game()
    sim.clock.set_time_scale(1.0)
    InnKeeperScript(sim)

    sim.run(real_seconds_for(3, sim.clock.time_scale), step=60)

    assert len(sim.metrics.snapshots) == 3
    assert sim.scheduler.stats.started >= 1
    assert sim.scheduler.stats.completed >= 1
    assert sim.guests
    assert any(sim.interactions.get_interaction_history(g["id"]) for g in sim.guests)
