"""Tests for world bounds and the mob path."""
import random

import pytest

from coredefense import config
from coredefense.models import Vector2
from coredefense.world import DEFAULT_WORLD, World


def test_clamp_keeps_player_inside_world() -> None:
    position = Vector2(-50, 10_000)
    DEFAULT_WORLD.clamp_player(position)
    assert position.x == config.PLAYER_SIZE / 2
    assert position.y == config.WORLD_HEIGHT - config.PLAYER_SIZE / 2


def test_player_spawn_is_on_ring_around_core() -> None:
    rng = random.Random(3)
    core = DEFAULT_WORLD.core_position
    for _ in range(20):
        spawn = DEFAULT_WORLD.player_spawn(rng)
        assert spawn.distance_to(core) == pytest.approx(config.PLAYER_SPAWN_RADIUS)


def test_mob_spawn_jitters_around_first_waypoint() -> None:
    rng = random.Random(5)
    start_x, start_y = config.WAYPOINTS[0]
    for _ in range(20):
        spawn = DEFAULT_WORLD.mob_spawn(rng)
        assert spawn.x == start_x
        assert abs(spawn.y - start_y) <= config.MOB_SPAWN_JITTER


def test_path_legs() -> None:
    world = World(waypoints=((0, 0), (10, 0), (10, 10)))
    assert world.target_waypoint(0) == Vector2(10, 0)
    assert world.target_waypoint(1) == Vector2(10, 10)
    assert world.target_waypoint(5) == Vector2(10, 10)
    assert not world.is_final_leg(0)
    assert world.is_final_leg(1)


def test_path_needs_two_waypoints() -> None:
    with pytest.raises(ValueError):
        World(waypoints=((0, 0),))


def test_move_towards_snaps_to_close_destination() -> None:
    position = Vector2(0, 0)
    position.move_towards(Vector2(3, 4), 2.5)
    assert position.distance_to(Vector2(3, 4)) == pytest.approx(2.5)
    position.move_towards(Vector2(3, 4), 10)
    assert position == Vector2(3, 4)
