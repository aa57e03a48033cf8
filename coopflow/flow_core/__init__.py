"""
Flow Core - The puzzle engine.

This module provides layout generation, the solvability gate, the path
construction state machine, the level controller and a Gymnasium wrapper.

Main exports:
- FlowPuzzleGame: Level controller (generation gate, power, progression)
- FlowPuzzleEnv: Gymnasium environment for automated agents
- LayoutGenerator / GenerationError: Layouts per level index
- SolvabilityChecker: Pre-display solvability gate
- PathSession / PuzzleInstance / apply_click: Path construction
- FlowConfig: Configuration loaded from level_config.yaml
"""

from coopflow.flow_core.config_loader import FlowConfig, load_config
from coopflow.flow_core.grid_model import Cell, CellKind, Endpoint, GridModel, Pair, Role
from coopflow.flow_core.layout_generator import GenerationError, LayoutGenerator, generate_layout
from coopflow.flow_core.solvability import SolvabilityChecker, find_path, is_solvable
from coopflow.flow_core.path_session import (
    ClickOutcome,
    PathSession,
    PuzzleInstance,
    apply_click,
    is_solved,
    resolve_click,
)
from coopflow.flow_core.game import FlowPuzzleGame, GameMode
from coopflow.flow_core.env_gym import FlowPuzzleEnv

__all__ = [
    "FlowConfig",
    "load_config",
    "Cell",
    "CellKind",
    "Endpoint",
    "GridModel",
    "Pair",
    "Role",
    "GenerationError",
    "LayoutGenerator",
    "generate_layout",
    "SolvabilityChecker",
    "find_path",
    "is_solvable",
    "ClickOutcome",
    "PathSession",
    "PuzzleInstance",
    "apply_click",
    "is_solved",
    "resolve_click",
    "FlowPuzzleGame",
    "GameMode",
    "FlowPuzzleEnv",
]
