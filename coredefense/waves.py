"""Wave difficulty curve and spawn cadence."""
from __future__ import annotations

import math
from dataclasses import dataclass

from . import config


@dataclass(frozen=True)
class WaveStats:
    """Difficulty of one wave for a given room population."""

    mob_hp: int
    mobs_per_wave: int


def compute_wave_stats(wave: int, player_count: int) -> WaveStats:
    """Return mob hit points and quota for ``wave``.

    Both values grow with the wave number and with the number of players so
    extra firepower does not trivialise a wave. An empty room is scaled as a
    single player.
    """
    wave = max(1, wave)
    players = max(1, player_count)
    mob_hp = math.floor(
        config.BASE_MOB_HP
        * (1 + wave * config.MOB_HP_WAVE_SCALE)
        * (1 + (players - 1) * config.MOB_HP_PLAYER_SCALE)
    )
    mobs_per_wave = (config.BASE_MOBS_PER_WAVE + wave * config.MOBS_PER_WAVE_STEP) * players
    return WaveStats(mob_hp=mob_hp, mobs_per_wave=mobs_per_wave)


def spawn_interval(wave: int) -> float:
    """Seconds between spawns; shrinks each wave down to a fixed floor."""
    interval = config.BASE_SPAWN_INTERVAL - (max(1, wave) - 1) * config.SPAWN_INTERVAL_STEP
    return max(config.MIN_SPAWN_INTERVAL, interval)
