"""Tests for the wave difficulty curve and spawn pacing."""
import pytest

from coredefense import config
from coredefense.waves import WaveStats, compute_wave_stats, spawn_interval


def test_first_wave_for_one_player() -> None:
    assert compute_wave_stats(1, 1) == WaveStats(mob_hp=45, mobs_per_wave=7)


def test_empty_room_is_scaled_as_one_player() -> None:
    assert compute_wave_stats(2, 0) == compute_wave_stats(2, 1)


@pytest.mark.parametrize("players", range(1, 6))
def test_stats_never_decrease_with_wave(players: int) -> None:
    stats = [compute_wave_stats(wave, players) for wave in range(1, 15)]
    for earlier, later in zip(stats, stats[1:]):
        assert later.mob_hp >= earlier.mob_hp
        assert later.mobs_per_wave >= earlier.mobs_per_wave


@pytest.mark.parametrize("wave", range(1, 15))
def test_stats_never_decrease_with_players(wave: int) -> None:
    stats = [compute_wave_stats(wave, players) for players in range(1, 8)]
    for earlier, later in zip(stats, stats[1:]):
        assert later.mob_hp >= earlier.mob_hp
        assert later.mobs_per_wave >= earlier.mobs_per_wave


def test_more_players_means_tougher_waves() -> None:
    solo = compute_wave_stats(3, 1)
    squad = compute_wave_stats(3, 4)
    assert squad.mob_hp > solo.mob_hp
    assert squad.mobs_per_wave > solo.mobs_per_wave


def test_spawn_interval_shrinks_to_floor() -> None:
    intervals = [spawn_interval(wave) for wave in range(1, 20)]
    assert intervals[0] == config.BASE_SPAWN_INTERVAL
    assert intervals[1] == pytest.approx(config.BASE_SPAWN_INTERVAL - config.SPAWN_INTERVAL_STEP)
    assert all(later <= earlier for earlier, later in zip(intervals, intervals[1:]))
    assert min(intervals) == config.MIN_SPAWN_INTERVAL
