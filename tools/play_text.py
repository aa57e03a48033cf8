"""
Text Play Mode
==============

Play the flow puzzle in a terminal. One player can take both roles: press
the power key, then click cells.

Commands:
    <row> <col>   Click a cell
    +<key>        Press the power key (e.g. +Q)
    -<key>        Release the power key
    n             Skip to the next level
    t             Retry (regenerate) the current level
    r             Restart at level 1
    q             Quit

Usage:
    python -m tools.play_text [--seed SEED] [--log-level LEVEL]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional

from coopflow.flow_core.config_loader import load_config
from coopflow.flow_core.env_gym import render_text
from coopflow.flow_core.game import FlowPuzzleGame, GameMode
from coopflow.logger_config import configure_logging


class TextPlayer:
    """Line-based front end for FlowPuzzleGame."""

    def __init__(self, seed: Optional[int] = None):
        self._game = FlowPuzzleGame(config=load_config(), seed=seed)
        self._game.add_solved_listener(self._on_solved)
        self._running = False
        self._last_time = 0.0

    def _on_solved(self, level: int) -> None:
        print(f"\n*** Level {level} solved in {self._game.power_ticks} power ticks ***")

    def _status(self) -> str:
        game = self._game
        power = "ON" if game.powered else "off"
        return (
            f"Level {game.level} | key {game.required_key} | power {power} | "
            f"ticks {game.power_ticks}"
        )

    def _show(self) -> None:
        game = self._game
        print()
        print(self._status())
        if game.mode is GameMode.PLATFORMER:
            print("Puzzle levels complete - platformer section reached.")
            return
        if game.unsolvable:
            print("No solvable layout for this level. Press n to skip or t to retry.")
            return
        print(render_text(game.get_render_data()))

    def _handle(self, line: str) -> None:
        game = self._game
        command = line.strip()
        if not command:
            return

        if command == "q":
            self._running = False
        elif command == "n":
            game.skip_level()
        elif command == "t":
            game.retry_level()
        elif command == "r":
            game.restart()
        elif command[0] in "+-" and len(command) == 2:
            if command[0] == "+":
                game.key_down(command[1])
            else:
                game.key_up(command[1])
        else:
            parts = command.split()
            if len(parts) != 2 or not all(p.isdigit() for p in parts):
                print(f"Unknown command: {command}")
                return
            outcome = game.click(int(parts[0]), int(parts[1]))
            print(f"-> {outcome.value}")
            if game.solved:
                game.next_level()

    def run(self) -> int:
        """Run until quit. Returns the last level reached."""
        self._game.start()
        self._running = True
        self._last_time = time.monotonic()

        while self._running:
            self._show()
            try:
                line = input("> ")
            except EOFError:
                break

            now = time.monotonic()
            self._game.tick(now - self._last_time)
            self._last_time = now
            self._handle(line)

        return self._game.level


def main():
    parser = argparse.ArgumentParser(description="Play the flow puzzle in a terminal")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Engine log level")

    args = parser.parse_args()
    configure_logging(args.log_level.upper())

    player = TextPlayer(seed=args.seed)
    level = player.run()
    print(f"\nReached level {level}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
