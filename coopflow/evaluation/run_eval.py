"""
Evaluation Harness
==================

Runs a puzzle agent against the fixed seed bank on every puzzle level and
reports solve rates.

Usage:
    python -m coopflow.evaluation.run_eval --agent contestants/baseline_router
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from coopflow.flow_core.env_gym import FlowPuzzleEnv
from coopflow.logger_config import configure_logging


@dataclass
class EvalResult:
    """Result for a single (seed, level) episode."""
    seed: int
    level: int
    solved: bool
    unsolvable: bool
    clicks: int
    elapsed_time: float
    actions: Optional[List[int]] = None


@dataclass
class EvalSummary:
    """Summary of evaluation across all episodes."""
    solve_rate: float
    mean_clicks: float
    solved_per_level: Dict[int, int]
    unsolvable_count: int
    total_time: float
    results: List[EvalResult]


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Load the evaluation seed bank.

    Args:
        path: Path to seed_bank.json. Uses default if None.

    Returns:
        List of seeds.
    """
    if path is None:
        path = os.path.join(os.path.dirname(__file__), "seed_bank.json")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return data["seeds"]


def load_agent(agent_path: str):
    """
    Load an agent from a path.

    Args:
        agent_path: Path to agent directory or agent.py file.

    Returns:
        Agent instance with act(obs) and optional reset().
    """
    agent_path = Path(agent_path)

    if agent_path.is_dir():
        agent_file = agent_path / "agent.py"
    else:
        agent_file = agent_path

    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    spec = importlib.util.spec_from_file_location("agent_module", agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["agent_module"] = module
    spec.loader.exec_module(module)

    if not hasattr(module, "FlowAgent"):
        raise AttributeError("Agent module must define a 'FlowAgent' class with an 'act' method")

    agent = module.FlowAgent()
    if not hasattr(agent, "act"):
        raise AttributeError("FlowAgent class must have an 'act' method")
    return agent


def evaluate_episode(
    agent,
    seed: int,
    level: int,
    record_actions: bool = False,
    env: Optional[FlowPuzzleEnv] = None
) -> EvalResult:
    """
    Evaluate an agent on one level for one seed.

    Args:
        agent: Object with act(obs) -> action and optional reset().
        seed: Random seed for layout generation.
        level: Puzzle level to play.
        record_actions: If True, record all actions.
        env: Environment to reuse. A new one is created if None.

    Returns:
        EvalResult for this episode.
    """
    own_env = env is None
    if env is None:
        env = FlowPuzzleEnv()

    obs, info = env.reset(seed=seed, options={"level": level})
    if hasattr(agent, "reset"):
        agent.reset()

    actions: Optional[List[int]] = [] if record_actions else None
    start_time = time.time()

    terminated = truncated = False
    while not (terminated or truncated) and not info["unsolvable"]:
        action = int(agent.act(obs))
        if actions is not None:
            actions.append(action)
        obs, _, terminated, truncated, info = env.step(action)

    result = EvalResult(
        seed=seed,
        level=level,
        solved=bool(info["solved"]),
        unsolvable=bool(info["unsolvable"]),
        clicks=int(info["clicks"]),
        elapsed_time=time.time() - start_time,
        actions=actions
    )

    if own_env:
        env.close()
    return result


def evaluate_agent(
    agent,
    seeds: Optional[List[int]] = None,
    levels: Optional[List[int]] = None,
    record_actions: bool = False,
    verbose: bool = True
) -> EvalSummary:
    """
    Evaluate an agent on every seed and level.

    Args:
        agent: Object with act(obs) -> action.
        seeds: List of seeds. Uses seed_bank.json if None.
        levels: Levels to play. All puzzle levels if None.
        record_actions: If True, record actions.
        verbose: If True, print progress.

    Returns:
        EvalSummary with aggregate statistics.
    """
    if seeds is None:
        seeds = load_seed_bank()

    env = FlowPuzzleEnv()
    if levels is None:
        levels = list(range(1, env.config.puzzle_level_count + 1))

    if verbose:
        print(f"Evaluating on {len(seeds)} seeds x {len(levels)} levels...")

    results: List[EvalResult] = []
    total_start = time.time()

    for seed in seeds:
        for level in levels:
            result = evaluate_episode(agent, seed, level, record_actions, env=env)
            results.append(result)
            if verbose:
                status = "solved" if result.solved else (
                    "unsolvable" if result.unsolvable else "failed")
                print(f"  Seed {seed} level {level}: {status} in {result.clicks} clicks")

    env.close()
    total_time = time.time() - total_start

    playable = [r for r in results if not r.unsolvable]
    solved = [r for r in playable if r.solved]
    solved_per_level = {level: 0 for level in levels}
    for r in solved:
        solved_per_level[r.level] += 1

    summary = EvalSummary(
        solve_rate=len(solved) / len(playable) if playable else 0.0,
        mean_clicks=float(np.mean([r.clicks for r in solved])) if solved else 0.0,
        solved_per_level=solved_per_level,
        unsolvable_count=len(results) - len(playable),
        total_time=total_time,
        results=results
    )

    if verbose:
        print()
        print("=" * 50)
        print("EVALUATION SUMMARY")
        print("=" * 50)
        print(f"Episodes:        {len(results)}")
        print(f"Solve rate:      {summary.solve_rate:.2%}")
        print(f"Mean clicks:     {summary.mean_clicks:.1f}")
        print(f"Unsolvable:      {summary.unsolvable_count}")
        for level, count in solved_per_level.items():
            print(f"  Level {level}:       {count}/{len(seeds)}")
        print(f"Total time:      {total_time:.2f}s")
        print("=" * 50)

    return summary


def save_results(
    summary: EvalSummary,
    agent_name: str,
    output_path: str
) -> None:
    """Save evaluation results to JSON."""
    data = {
        "agent": agent_name,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "solve_rate": summary.solve_rate,
        "mean_clicks": summary.mean_clicks,
        "solved_per_level": summary.solved_per_level,
        "unsolvable_count": summary.unsolvable_count,
        "total_time": summary.total_time,
        "results": [
            {
                "seed": r.seed,
                "level": r.level,
                "solved": r.solved,
                "unsolvable": r.unsolvable,
                "clicks": r.clicks,
                "elapsed_time": r.elapsed_time
            }
            for r in summary.results
        ]
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    print(f"Results saved to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate a flow puzzle agent")
    parser.add_argument(
        "--agent",
        type=str,
        required=True,
        help="Path to agent directory or agent.py file"
    )
    parser.add_argument(
        "--seeds",
        type=str,
        default=None,
        help="Path to seed bank JSON (uses default if not specified)"
    )
    parser.add_argument(
        "--levels",
        type=int,
        nargs="*",
        default=None,
        help="Levels to play (all puzzle levels if not specified)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to save results JSON"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce output verbosity"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Engine log level"
    )

    args = parser.parse_args()
    configure_logging(args.log_level.upper())

    print(f"Loading agent from {args.agent}...")
    try:
        agent = load_agent(args.agent)
    except (OSError, ImportError, AttributeError) as e:
        print(f"Error loading agent: {e}")
        return 1

    seeds = load_seed_bank(args.seeds) if args.seeds else None

    summary = evaluate_agent(
        agent,
        seeds=seeds,
        levels=args.levels,
        verbose=not args.quiet
    )

    if args.output:
        save_results(summary, Path(args.agent).name, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
