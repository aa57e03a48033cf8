"""
Team Template Agent
===================

Your agent must provide a `FlowAgent` class with an `act(obs) -> action`
method. `reset()` is optional and called at the start of every episode.

Actions are flat cell indices: row * N + col on the N x N board.

Observation keys are listed in coopflow/flow_core/state_snapshot.py.
"""

from __future__ import annotations

from typing import Dict

import numpy as np


class FlowAgent:
    """
    Your puzzle agent implementation.

    Replace the strategy in `act()` with your own logic.
    """

    def __init__(self):
        """Initialize your agent. Load models, set up state, etc."""
        self.rng = np.random.default_rng()

    def act(self, obs: Dict[str, np.ndarray]) -> int:
        """
        Choose a cell to click.

        Args:
            obs: Dictionary containing puzzle state.

        Returns:
            action: Flat cell index in [0, N * N).
        """
        size = obs["cells"].shape[0]
        return int(self.rng.integers(size * size))

    def reset(self) -> None:
        """Called when a new episode starts (optional)."""
        pass
