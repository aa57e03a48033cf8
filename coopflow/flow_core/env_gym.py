"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to a single puzzle level.
Reward is always 0.0 - agents compute their own from info.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

import gymnasium as gym
from gymnasium import spaces

from coopflow.flow_core.config_loader import FlowConfig, load_config
from coopflow.flow_core.game import FlowPuzzleGame
from coopflow.flow_core.path_session import ClickOutcome
from coopflow.flow_core.state_snapshot import NO_PAIR, ROLE_TARGET

logger = logging.getLogger(__name__)


class FlowPuzzleEnv(gym.Env):
    """
    Cooperative flow puzzle as a Gymnasium environment.

    Action Space:
        Discrete(N * N). Action `a` clicks cell (a // N, a % N).

    Observation Space:
        Dict of board arrays and scalars from PuzzleSnapshot.to_obs_dict().

    Reward:
        Always 0.0.

    Episodes:
        One level. Terminated when solved; truncated after `caps.max_clicks`
        clicks or when the level has no playable layout.

    Power:
        The agent plays the path-building role; power is held on its behalf
        unless `reset(options={"powered": False})` is used.
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(
        self,
        config_path: Optional[str] = None,
        level: int = 1,
        render_mode: Optional[str] = None,
        debug: bool = False,
    ):
        """
        Initialize environment.

        Args:
            config_path: Path to level_config.yaml. Uses default if None.
            level: Level played by default on reset.
            render_mode: "ansi" for a text board, None for headless.
            debug: If True, log every step at INFO level.
        """
        super().__init__()

        self._config = load_config(config_path)
        self._level = level
        self._debug = debug
        self.render_mode = render_mode

        self._size = self._config.grid.size
        self._max_pairs = self._config.caps.max_pairs
        self._max_clicks = self._config.caps.max_clicks

        self._game = FlowPuzzleGame(config=self._config)
        self._clicks = 0

        self.action_space = spaces.Discrete(self._size * self._size)
        self.observation_space = self._build_observation_space()

        if self._debug:
            logger.info("FlowPuzzleEnv initialized: %dx%d board, level %d",
                        self._size, self._size, level)

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        n = self._size
        max_pairs = self._max_pairs
        return spaces.Dict({
            "level": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "powered": spaces.Box(low=0, high=1, shape=(), dtype=np.int8),
            "solved": spaces.Box(low=0, high=1, shape=(), dtype=np.int8),
            "active_pair": spaces.Box(low=NO_PAIR, high=max_pairs - 1, shape=(), dtype=np.int32),
            "pair_count": spaces.Box(low=0, high=max_pairs, shape=(), dtype=np.int32),
            "cells": spaces.Box(low=-1, high=0, shape=(n, n), dtype=np.int8),
            "path_owner": spaces.Box(low=NO_PAIR, high=max_pairs - 1, shape=(n, n), dtype=np.int16),
            "endpoint_pair": spaces.Box(low=NO_PAIR, high=max_pairs - 1, shape=(n, n), dtype=np.int16),
            "endpoint_role": spaces.Box(low=0, high=ROLE_TARGET, shape=(n, n), dtype=np.int8),
            "pair_mask": spaces.MultiBinary(max_pairs),
            "path_length": spaces.Box(low=0, high=n * n, shape=(max_pairs,), dtype=np.int16),
            "complete_mask": spaces.MultiBinary(max_pairs),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for reproducibility.
            options: {"level": int, "powered": bool}, both optional.

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)
        options = options or {}

        if seed is not None:
            self._game = FlowPuzzleGame(config=self._config, seed=seed)

        self._game.start()
        level = int(options.get("level", self._level))
        if level != self._game.level:
            self._game.load_level(level)
        self._game.set_powered(bool(options.get("powered", True)))
        self._clicks = 0

        obs = self._game.build_snapshot().to_obs_dict()
        info = self._game.get_info()
        info["outcome"] = ClickOutcome.IGNORED.value
        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Click one cell.

        Args:
            action: Flat cell index row * N + col.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = action.item()
        action = int(action)
        row, col = divmod(action, self._size)

        outcome = self._game.click(row, col)
        self._clicks += 1

        obs = self._game.build_snapshot().to_obs_dict()
        terminated = self._game.solved
        truncated = not terminated and (
            self._clicks >= self._max_clicks or self._game.session is None
        )

        info = self._game.get_info()
        info["outcome"] = outcome.value

        if self._debug:
            logger.info("Step: cell=(%d, %d) outcome=%s", row, col, outcome.value)
            if terminated:
                logger.info("SOLVED in %d clicks", self._clicks)

        return obs, 0.0, terminated, truncated, info

    def render(self) -> Optional[str]:
        """Render the board as text when render_mode is "ansi"."""
        if self.render_mode != "ansi":
            return None
        return render_text(self._game.get_render_data())

    def close(self) -> None:
        pass

    @property
    def game(self) -> FlowPuzzleGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> FlowConfig:
        return self._config


def render_text(render_data: Dict[str, Any]) -> str:
    """
    Text board from FlowPuzzleGame.get_render_data().

    Legend: '#' obstacle, 'S<id>'/'T<id>' endpoints, '<id>' path cell,
    '.' empty.
    """
    size = render_data["size"]
    board = [["." for _ in range(size)] for _ in range(size)]

    for row, col in render_data["obstacles"]:
        board[row][col] = "#"
    for pair_id, path in render_data["paths"].items():
        for row, col in path:
            board[row][col] = str(pair_id)
    for endpoint in render_data["endpoints"]:
        prefix = "S" if endpoint["role"] == "source" else "T"
        board[endpoint["row"]][endpoint["col"]] = f"{prefix}{endpoint['pair_id']}"

    header = "    " + " ".join(f"{c:>2}" for c in range(size))
    lines = [header]
    for r, row in enumerate(board):
        lines.append(f"{r:>2}  " + " ".join(f"{cell:>2}" for cell in row))
    return "\n".join(lines)
