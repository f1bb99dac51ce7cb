"""Static geometry of the defended map: bounds, core and mob path."""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Tuple

from . import config
from .models import Vector2


@dataclass(frozen=True)
class World:
    """World rectangle, core location and the waypoint path mobs follow.

    The last waypoint is the core itself: a mob that arrives there breaches
    the core instead of advancing.
    """

    width: float = config.WORLD_WIDTH
    height: float = config.WORLD_HEIGHT
    player_size: float = config.PLAYER_SIZE
    core: Tuple[float, float] = (config.CORE_X, config.CORE_Y)
    waypoints: Tuple[Tuple[float, float], ...] = config.WAYPOINTS

    def __post_init__(self) -> None:
        if len(self.waypoints) < 2:
            raise ValueError("A path needs at least two waypoints")

    @property
    def core_position(self) -> Vector2:
        return Vector2(*self.core)

    def clamp_player(self, position: Vector2) -> None:
        """Keep a player's centre inside the world rect, in-place."""
        half = self.player_size / 2
        position.x = max(half, min(self.width - half, position.x))
        position.y = max(half, min(self.height - half, position.y))

    def player_spawn(self, rng: random.Random) -> Vector2:
        angle = rng.uniform(0.0, math.pi * 2)
        position = Vector2(
            self.core[0] + math.cos(angle) * config.PLAYER_SPAWN_RADIUS,
            self.core[1] + math.sin(angle) * config.PLAYER_SPAWN_RADIUS,
        )
        self.clamp_player(position)
        return position

    def mob_spawn(self, rng: random.Random) -> Vector2:
        start_x, start_y = self.waypoints[0]
        jitter = rng.uniform(-config.MOB_SPAWN_JITTER, config.MOB_SPAWN_JITTER)
        return Vector2(start_x, start_y + jitter)

    def target_waypoint(self, waypoint_index: int) -> Vector2:
        """Waypoint a mob that last visited ``waypoint_index`` walks to."""
        next_index = min(waypoint_index + 1, len(self.waypoints) - 1)
        return Vector2(*self.waypoints[next_index])

    def is_final_leg(self, waypoint_index: int) -> bool:
        return waypoint_index >= len(self.waypoints) - 2


DEFAULT_WORLD = World()
