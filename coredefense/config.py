"""Configuration constants for the Core Defense server.

Numeric values mirror the pacing of the browser client: world units are
pixels, mob speed is expressed per simulation tick and fire rates are in
milliseconds because the client schedules its own shots.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

WORLD_WIDTH = 800
WORLD_HEIGHT = 600
PLAYER_SIZE = 32
PLAYER_SPEED = 4  # units per move intent
PLAYER_SPAWN_RADIUS = 100

CORE_X = 400
CORE_Y = 300
CORE_MAX_HP = 100
CORE_BREACH_DAMAGE = 10

# Mobs walk the path from the left edge and finish on the core.
WAYPOINTS: Tuple[Tuple[float, float], ...] = (
    (0.0, 100.0),
    (200.0, 100.0),
    (200.0, 300.0),
    (CORE_X, CORE_Y),
)
WAYPOINT_ARRIVAL_RADIUS = 30.0
MOB_SPEED = 1.2  # units per tick
MOB_SPAWN_JITTER = 50.0

# Combat and progression
ARROW_DAMAGE = 12
GOLD_REWARD = 10
KILLS_TO_LEVEL = 5
BASE_FIRE_RATE = 500  # ms between shots
FIRE_RATE_STEP = 50
MIN_FIRE_RATE = 250

# Wave curve
BASE_MOB_HP = 30
MOB_HP_WAVE_SCALE = 0.5
MOB_HP_PLAYER_SCALE = 0.7
BASE_MOBS_PER_WAVE = 5
MOBS_PER_WAVE_STEP = 2

# Spawn cadence in seconds
BASE_SPAWN_INTERVAL = 2.0
SPAWN_INTERVAL_STEP = 0.3
MIN_SPAWN_INTERVAL = 1.0

# Shop catalogue keyed by upgrade type.
UPGRADES: Dict[str, Dict[str, float]] = {
    "damage": {
        "base_cost": 20,
        "growth": 1.5,
        "damage_bonus": 4,
    },
}

DEFAULT_ROOM_NAME = "default"
ROOM_NAME_MAX_LENGTH = 32


@dataclass(frozen=True)
class RoomSettings:
    """Per-room rules shared by every room a manager creates.

    Attributes
    ----------
    max_players:
        Room capacity. Joins beyond it are rejected with ``room_full``.
    max_waves:
        Completing this wave ends the match in victory.
    shop_enabled:
        When true the match pauses in the shop between waves, otherwise the
        next wave starts as soon as the previous one is cleared.
    tick_rate:
        Simulation ticks per second while a wave is being played.
    broadcast_interval:
        Seconds between full game-state snapshots pushed to the room.
    """

    max_players: int = 5
    max_waves: int = 3
    shop_enabled: bool = True
    tick_rate: int = 60
    broadcast_interval: float = 0.05

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.tick_rate

    def validate(self) -> None:
        if self.max_players <= 0:
            raise ValueError("max_players must be positive")
        if self.max_waves <= 0:
            raise ValueError("max_waves must be positive")
        if self.tick_rate <= 0:
            raise ValueError("Tick rate must be positive")
        if self.broadcast_interval <= 0:
            raise ValueError("Broadcast interval must be positive")
