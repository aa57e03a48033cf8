"""
Layout Generator
================

Produces a GridModel for a level index, either from a fixed template or by
bounded rejection sampling.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional, Set

from coopflow.flow_core.config_loader import FlowConfig, LevelTemplate, get_config
from coopflow.flow_core.grid_model import Cell, Endpoint, GridModel, Role, manhattan

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Randomized placement could not satisfy its constraints within the attempt cap."""


class LayoutGenerator:
    """
    Builds layouts from the level table.

    Randomized levels place obstacles uniformly in the interior, then pick
    each pair's source among open unused cells and its target among open
    unused cells at least `min_distance` away. Every draw loop is capped at
    `generation.max_attempts`.
    """

    def __init__(
        self,
        config: Optional[FlowConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize generator.

        Args:
            config: Puzzle configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = random.Random(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed the generator."""
        self._rng = random.Random(seed)

    def generate_layout(self, level_index: int) -> GridModel:
        """
        Generate a layout for a level.

        Args:
            level_index: 1-based level number. Unknown indices use the
                default one-pair layout.

        Returns:
            A GridModel satisfying all board invariants.

        Raises:
            GenerationError: If a randomized placement exhausts its attempts.
        """
        template = self._config.get_level(level_index)
        if template.is_randomized:
            return self._generate_random(template)
        return self._generate_fixed(template)

    def _generate_fixed(self, template: LevelTemplate) -> GridModel:
        return GridModel.build(
            size=self._config.grid.size,
            obstacles=template.obstacles,
            pairs=[(p.source, p.target) for p in template.pairs],
            tags=[(p.source_tag, p.target_tag) for p in template.pairs]
        )

    def _generate_random(self, template: LevelTemplate) -> GridModel:
        size = self._config.grid.size
        margin = self._config.grid.interior_margin
        used: Set[Cell] = set()

        # Obstacles in the interior only
        obstacles: Set[Cell] = set()
        num_obstacles = self._rng.randint(*template.obstacle_count)
        for _ in range(num_obstacles):
            cell = self._draw(
                lambda: Cell(
                    self._rng.randint(margin, size - 1 - margin),
                    self._rng.randint(margin, size - 1 - margin)
                ),
                lambda c: c not in used,
                what="obstacle",
                level=template.index
            )
            obstacles.add(cell)
            used.add(cell)

        endpoints: List[Endpoint] = []
        num_pairs = self._rng.randint(*template.pair_count)
        for pair_id in range(num_pairs):
            source = self._draw(
                self._random_cell,
                lambda c: c not in used,
                what="source",
                level=template.index
            )
            used.add(source)

            target = self._draw(
                self._random_cell,
                lambda c: c not in used and manhattan(c, source) >= template.min_distance,
                what="target",
                level=template.index
            )
            used.add(target)

            tag = template.tags[pair_id]
            endpoints.append(Endpoint(source, pair_id, Role.SOURCE, tag))
            endpoints.append(Endpoint(target, pair_id, Role.TARGET, tag))

        logger.debug(
            "Level %d layout: %d obstacles, %d pairs",
            template.index, len(obstacles), num_pairs
        )
        return GridModel(
            size=size,
            obstacles=frozenset(obstacles),
            endpoints=tuple(endpoints)
        )

    def _random_cell(self) -> Cell:
        size = self._config.grid.size
        return Cell(self._rng.randrange(size), self._rng.randrange(size))

    def _draw(
        self,
        sample: Callable[[], Cell],
        accept: Callable[[Cell], bool],
        what: str,
        level: int
    ) -> Cell:
        """Rejection-sample a cell, giving up after max_attempts draws."""
        max_attempts = self._config.generation.max_attempts
        for _ in range(max_attempts):
            cell = sample()
            if accept(cell):
                return cell
        raise GenerationError(
            f"Level {level}: no valid {what} cell after {max_attempts} attempts"
        )


def generate_layout(
    level_index: int,
    config: Optional[FlowConfig] = None,
    seed: Optional[int] = None
) -> GridModel:
    """Generate a single layout with a throwaway generator."""
    return LayoutGenerator(config, seed).generate_layout(level_index)
