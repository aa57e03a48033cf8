"""
Tests for the evaluation harness and baseline agent.
"""

import json
import os
import sys

import pytest

from coopflow.evaluation.run_eval import (
    evaluate_agent, evaluate_episode, load_agent, load_seed_bank, save_results,
)
from coopflow.flow_core.env_gym import FlowPuzzleEnv
from coopflow.flow_core.grid_model import GridModel


ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BASELINE = os.path.join(ROOT, "contestants", "baseline_router")
TEMPLATE = os.path.join(ROOT, "contestants", "team_template")


@pytest.fixture
def baseline():
    return load_agent(BASELINE)


class TestLoading:
    """Test seed bank and agent loading."""

    def test_seed_bank(self):
        seeds = load_seed_bank()
        assert len(seeds) == 20
        assert len(set(seeds)) == 20

    def test_load_from_directory(self, baseline):
        assert hasattr(baseline, "act")

    def test_load_template(self):
        assert hasattr(load_agent(TEMPLATE), "act")

    def test_missing_agent(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_agent(str(tmp_path))

    def test_agent_without_class(self, tmp_path):
        path = tmp_path / "agent.py"
        path.write_text("def act(obs):\n    return 0\n")
        with pytest.raises(AttributeError):
            load_agent(str(path))


class TestBaselineAgent:
    """Test the routing baseline."""

    @pytest.mark.parametrize("level", [1, 2, 4, 6])
    def test_solves_fixed_levels(self, baseline, level):
        result = evaluate_episode(baseline, seed=0, level=level)
        assert result.solved
        assert not result.unsolvable

    def test_plan_routes_disjoint(self, baseline):
        agent_module = sys.modules[type(baseline).__module__]

        grid = GridModel.build(
            size=6,
            obstacles=[],
            pairs=[((0, 0), (0, 5)), ((2, 0), (2, 5)), ((4, 0), (4, 5))]
        )
        routes = agent_module.plan_routes(grid)
        cells = [cell for path in routes.values() for cell in path]
        assert len(cells) == len(set(cells))

    def test_replans_after_silent_reset(self, baseline):
        """Resetting to the same board mid-plan without agent.reset() still solves."""
        env = FlowPuzzleEnv()
        obs, _ = env.reset(seed=0, options={"level": 2})
        for _ in range(3):
            obs, *_ = env.step(baseline.act(obs))

        obs, _ = env.reset(seed=0, options={"level": 2})
        terminated = truncated = False
        while not (terminated or truncated):
            obs, _, terminated, truncated, _ = env.step(baseline.act(obs))

        assert terminated
        env.close()

    def test_replans_on_new_layout(self, baseline):
        """Moving to another board mid-plan gets a fresh plan."""
        env = FlowPuzzleEnv()
        obs, _ = env.reset(seed=0, options={"level": 1})
        obs, *_ = env.step(baseline.act(obs))

        obs, _ = env.reset(seed=0, options={"level": 2})
        terminated = truncated = False
        while not (terminated or truncated):
            obs, _, terminated, truncated, _ = env.step(baseline.act(obs))

        assert terminated
        env.close()

    def test_records_actions(self, baseline):
        result = evaluate_episode(baseline, seed=0, level=1, record_actions=True)
        assert len(result.actions) == result.clicks == 11


class TestEvaluateAgent:
    """Test aggregate evaluation."""

    def test_summary(self, baseline):
        summary = evaluate_agent(baseline, seeds=[1, 2], levels=[1, 2], verbose=False)

        assert len(summary.results) == 4
        assert summary.solve_rate == 1.0
        assert summary.solved_per_level == {1: 2, 2: 2}
        assert summary.unsolvable_count == 0

    def test_save_results(self, baseline, tmp_path):
        summary = evaluate_agent(baseline, seeds=[1], levels=[1], verbose=False)
        path = tmp_path / "results.json"
        save_results(summary, "baseline_router", str(path))

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        assert data["agent"] == "baseline_router"
        assert len(data["results"]) == 1
