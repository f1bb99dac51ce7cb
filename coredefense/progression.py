"""Kill rewards, levelling curve and shop pricing."""
from __future__ import annotations

from typing import Dict

from . import config
from .models import Player


def register_kill(player: Player) -> bool:
    """Credit ``player`` with one kill and its gold; return True on level-up."""
    player.gold += config.GOLD_REWARD
    player.kills += 1
    if player.kills % config.KILLS_TO_LEVEL != 0:
        return False
    player.level += 1
    player.fire_rate = max(config.MIN_FIRE_RATE, player.fire_rate - config.FIRE_RATE_STEP)
    return True


def upgrade_cost(upgrade_type: str, owned: int) -> int:
    """Price of the next purchase: ``base_cost * growth ** owned``."""
    stats = config.UPGRADES[upgrade_type]
    return int(stats["base_cost"] * stats["growth"] ** owned)


def upgrade_prices(player: Player) -> Dict[str, int]:
    return {
        upgrade_type: upgrade_cost(upgrade_type, player.upgrades.get(upgrade_type, 0))
        for upgrade_type in config.UPGRADES
    }


def apply_upgrade(player: Player, upgrade_type: str) -> None:
    stats = config.UPGRADES[upgrade_type]
    player.upgrades[upgrade_type] = player.upgrades.get(upgrade_type, 0) + 1
    player.damage += int(stats["damage_bonus"])
