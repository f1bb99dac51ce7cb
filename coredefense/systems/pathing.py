"""Mob movement along the waypoint path."""
from __future__ import annotations

from typing import TYPE_CHECKING

from coredefense import config

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from coredefense.game import DefenseGame


class PathingSystem:
    """Walks every live mob one step towards its next waypoint per tick."""

    def __init__(self, game: "DefenseGame") -> None:
        self._game = game

    def update(self) -> None:
        state = self._game.state
        world = self._game.world
        for mob in list(state.mobs.values()):
            target = world.target_waypoint(mob.waypoint_index)
            if mob.position.distance_to(target) < config.WAYPOINT_ARRIVAL_RADIUS:
                if not world.is_final_leg(mob.waypoint_index):
                    mob.waypoint_index += 1
                    continue
                state.mobs.pop(mob.id, None)
                self._game.breach_core(mob)
                if state.game_over:
                    return
                continue
            mob.position.move_towards(target, config.MOB_SPEED)
