"""Core data structures used by the defense simulation."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from . import config


@dataclass
class Vector2:
    """Simple 2D vector with helpers for movement calculations."""

    x: float
    y: float

    def copy(self) -> "Vector2":
        return Vector2(self.x, self.y)

    def move_towards(self, destination: "Vector2", max_distance: float) -> None:
        """Move in-place towards ``destination`` by up to ``max_distance``."""
        dx = destination.x - self.x
        dy = destination.y - self.y
        distance_sq = dx * dx + dy * dy
        if distance_sq == 0 or max_distance <= 0:
            return
        if distance_sq <= max_distance * max_distance:
            self.x = destination.x
            self.y = destination.y
            return
        distance = distance_sq ** 0.5
        self.x += (dx / distance) * max_distance
        self.y += (dy / distance) * max_distance

    def distance_to(self, other: "Vector2") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


class MatchState(str, Enum):
    """Phases of a room's match."""

    LOBBY = "LOBBY"
    PLAYING = "PLAYING"
    SHOP = "SHOP"
    VICTORY = "VICTORY"


@dataclass(slots=True)
class Player:
    """A connected archer. The id is the connection handle."""

    id: str
    position: Vector2
    gold: int = 0
    kills: int = 0
    level: int = 1
    fire_rate: int = config.BASE_FIRE_RATE
    damage: int = config.ARROW_DAMAGE
    upgrades: Dict[str, int] = field(default_factory=dict)
    ready: bool = False
    shop_ready: bool = False

    def reset_progress(self) -> None:
        self.gold = 0
        self.kills = 0
        self.level = 1
        self.fire_rate = config.BASE_FIRE_RATE
        self.damage = config.ARROW_DAMAGE
        self.upgrades.clear()
        self.ready = False
        self.shop_ready = False

    def stats(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "gold": self.gold,
            "kills": self.kills,
            "level": self.level,
            "fire_rate": self.fire_rate,
            "damage": self.damage,
            "upgrades": dict(self.upgrades),
        }

    def serialise(self) -> Dict[str, object]:
        data = self.stats()
        data.update(
            {
                "x": self.position.x,
                "y": self.position.y,
                "ready": self.ready,
                "shop_ready": self.shop_ready,
            }
        )
        return data


@dataclass(slots=True)
class Mob:
    """A hostile walking the waypoint path towards the core."""

    id: str
    position: Vector2
    hp: int
    max_hp: int
    waypoint_index: int = 0
    last_hit_by: Optional[str] = None

    def is_alive(self) -> bool:
        return self.hp > 0

    def serialise(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "x": self.position.x,
            "y": self.position.y,
            "hp": max(self.hp, 0),
            "max_hp": self.max_hp,
            "waypoint_index": self.waypoint_index,
            "last_hit_by": self.last_hit_by,
        }


@dataclass(slots=True)
class MatchConfig:
    """Match-level progress. Only the match state machine mutates it."""

    max_waves: int
    state: MatchState = MatchState.LOBBY
    current_wave: int = 0

    def serialise(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "current_wave": self.current_wave,
            "max_waves": self.max_waves,
        }


@dataclass(slots=True)
class GameState:
    """Mutable simulation state of one room."""

    core_hp: int = config.CORE_MAX_HP
    wave: int = 1
    mobs: Dict[str, Mob] = field(default_factory=dict)
    game_over: bool = False
    mobs_spawned_this_wave: int = 0
    mobs_killed_this_wave: int = 0
    mobs_per_wave: int = config.BASE_MOBS_PER_WAVE
    current_mob_hp: int = config.BASE_MOB_HP
    players_at_wave_start: int = 1

    def reset(self) -> None:
        self.core_hp = config.CORE_MAX_HP
        self.wave = 1
        self.mobs.clear()
        self.game_over = False
        self.mobs_spawned_this_wave = 0
        self.mobs_killed_this_wave = 0
        self.mobs_per_wave = config.BASE_MOBS_PER_WAVE
        self.current_mob_hp = config.BASE_MOB_HP
        self.players_at_wave_start = 1

    def mob_list(self) -> List[Dict[str, object]]:
        return [mob.serialise() for mob in self.mobs.values()]

    def serialise(self) -> Dict[str, object]:
        return {
            "core_hp": self.core_hp,
            "wave": self.wave,
            "mobs": self.mob_list(),
        }
