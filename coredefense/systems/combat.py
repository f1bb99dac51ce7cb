"""Damage claims, kill attribution and shop purchases."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coredefense import config, progression
from coredefense.messages import MobKilled, PlayerUpdate
from coredefense.models import MatchState

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from coredefense.game import DefenseGame

logger = logging.getLogger(__name__)


class CombatSystem:
    """Resolves hit claims and upgrades against a room's state."""

    def __init__(self, game: "DefenseGame") -> None:
        self._game = game

    def apply_damage(self, attacker_id: str, mob_id: str) -> bool:
        """Apply one hit from ``attacker_id``; return True if it killed the mob.

        Claims against a mob that is already gone are expected when several
        players shoot the same mob and resolve to a no-op. The kill belongs
        to whoever is recorded as the mob's last hitter when its hit points
        reach zero.
        """
        game = self._game
        if game.match.state is not MatchState.PLAYING or game.state.game_over:
            return False
        attacker = game.players.get(attacker_id)
        if attacker is None:
            return False
        mob = game.state.mobs.get(mob_id)
        if mob is None:
            logger.debug("Room %s: hit on missing mob %s ignored", game.room_id, mob_id)
            return False

        mob.hp -= attacker.damage
        mob.last_hit_by = attacker.id
        if mob.is_alive():
            return False

        mob.hp = 0
        del game.state.mobs[mob_id]
        game.state.mobs_killed_this_wave += 1
        killer = game.players.get(mob.last_hit_by)
        if killer is not None:
            if progression.register_kill(killer):
                logger.info(
                    "Room %s: %s reached level %d", game.room_id, killer.id, killer.level
                )
            game.emit(PlayerUpdate(**killer.stats()))
        game.emit(MobKilled(mob_id=mob_id, by=mob.last_hit_by, position=mob.position.to_dict()))
        return True

    def buy_upgrade(self, player_id: str, upgrade_type: str) -> bool:
        game = self._game
        if game.match.state is not MatchState.SHOP:
            return False
        player = game.players.get(player_id)
        if player is None or upgrade_type not in config.UPGRADES:
            return False
        cost = progression.upgrade_cost(upgrade_type, player.upgrades.get(upgrade_type, 0))
        if player.gold < cost:
            logger.debug(
                "Room %s: %s cannot afford %s (%d < %d)",
                game.room_id,
                player_id,
                upgrade_type,
                player.gold,
                cost,
            )
            return False
        player.gold -= cost
        progression.apply_upgrade(player, upgrade_type)
        game.emit(PlayerUpdate(**player.stats()))
        return True
