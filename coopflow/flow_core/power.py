"""
Power Input
===========

Derives the `powered` flag from the power-holder's raw key state and keeps
the power timer. The puzzle engine only ever sees the resulting boolean.
"""

from __future__ import annotations

import random
from typing import Optional

from coopflow.flow_core.config_loader import FlowConfig, get_config


class PowerInput:
    """
    Tracks whether the assigned power key is held.

    A new key is drawn from the configured pool on every `assign_key` call;
    releasing or reassigning the key drops power.
    """

    def __init__(
        self,
        config: Optional[FlowConfig] = None,
        seed: Optional[int] = None
    ):
        if config is None:
            config = get_config()

        self._keys = config.power.keys
        self._rng = random.Random(seed)
        self._required_key: str = ""
        self._held: bool = False

    @property
    def required_key(self) -> str:
        """Key the power-holder must hold, or '' before assignment."""
        return self._required_key

    @property
    def powered(self) -> bool:
        return self._held

    def assign_key(self) -> str:
        """Draw a new power key and release power."""
        self._required_key = self._rng.choice(self._keys)
        self._held = False
        return self._required_key

    def key_down(self, key: str) -> bool:
        """Register a key press. Returns the new powered state."""
        if self._required_key and key.upper() == self._required_key:
            self._held = True
        return self._held

    def key_up(self, key: str) -> bool:
        """Register a key release. Returns the new powered state."""
        if self._required_key and key.upper() == self._required_key:
            self._held = False
        return self._held

    def release(self) -> None:
        self._held = False


class PowerTimer:
    """Counts fixed ticks while power is held on an unsolved level."""

    def __init__(self, config: Optional[FlowConfig] = None):
        if config is None:
            config = get_config()

        self._tick_seconds = config.power.tick_seconds
        self._elapsed: float = 0.0
        self._ticks: int = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def seconds(self) -> float:
        """Powered time in whole ticks."""
        return self._ticks * self._tick_seconds

    def reset(self) -> None:
        self._elapsed = 0.0
        self._ticks = 0

    def update(self, dt: float, powered: bool, running: bool = True) -> int:
        """
        Advance the timer.

        Args:
            dt: Wall time since the last update, in seconds.
            powered: Current power state.
            running: False once the level is solved or before the game starts.

        Returns:
            Number of ticks added by this update.
        """
        if not powered or not running:
            # Partial ticks do not carry over a release
            self._elapsed = 0.0
            return 0

        self._elapsed += dt
        added = int(self._elapsed // self._tick_seconds)
        if added:
            self._ticks += added
            self._elapsed -= added * self._tick_seconds
        return added
