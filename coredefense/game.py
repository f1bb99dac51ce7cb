"""Server-authoritative simulation of one room's defense match."""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Dict, List, Optional

from . import config, progression
from .config import RoomSettings
from .messages import (
    ArrowFired,
    ArrowHit,
    BuyUpgrade,
    CurrentPlayers,
    Envelope,
    GameOver,
    GameReset,
    GameStateChanged,
    GameStateUpdate,
    Intent,
    Message,
    MoveInput,
    NewPlayer,
    PlayerDisconnected,
    PlayerMoved,
    ResetGame,
    RoomJoined,
    ShootArrow,
    ShopOpened,
    ShopReady,
    ToggleReady,
    WaveComplete,
    WaveStatsNotice,
)
from .models import GameState, MatchConfig, MatchState, Mob, Player
from .scheduler import SPAWN_TIMER, TICK_TIMER
from .systems import CombatSystem, PathingSystem
from .waves import compute_wave_stats, spawn_interval
from .world import DEFAULT_WORLD, World

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class RoomFullError(RuntimeError):
    """Raised when a room has already reached the player limit."""


class DefenseGame:
    """Encapsulates players, mobs and match progress of a single room.

    The game is synchronous: callers serialise access (the owning room holds
    its lock around every call) and collect the resulting broadcasts with
    :meth:`drain`. Spawn and tick timers are started and cancelled through
    the injected scheduler as the match moves between states.
    """

    def __init__(
        self,
        room_id: str,
        scheduler: "Scheduler",
        settings: Optional[RoomSettings] = None,
        world: World = DEFAULT_WORLD,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.room_id = room_id
        self.scheduler = scheduler
        self.settings = settings or RoomSettings()
        self.world = world
        self.random = rng or random.Random()
        self.players: Dict[str, Player] = {}
        self.match = MatchConfig(max_waves=self.settings.max_waves)
        self.state = GameState()
        self.mob_id_counter = 0
        self.outbox: List[Envelope] = []
        self.pathing = PathingSystem(self)
        self.combat = CombatSystem(self)

    # ------------------------------------------------------------------
    # Entity store
    # ------------------------------------------------------------------
    def add_player(self, player_id: str) -> Player:
        """Register a player at a random spot near the core."""
        if len(self.players) >= self.settings.max_players:
            raise RoomFullError(f"room {self.room_id} is full")
        player = Player(id=player_id, position=self.world.player_spawn(self.random))
        self.players[player_id] = player
        logger.info("Room %s: player %s joined (%d/%d)", self.room_id, player_id,
                    len(self.players), self.settings.max_players)

        self.emit(
            RoomJoined(room=self.room_id, player_id=player_id,
                       max_players=self.settings.max_players),
            to=player_id,
        )
        self.emit(
            CurrentPlayers(
                players=self._player_dump(),
                my_id=player_id,
                match=self.match.serialise(),
                game_state=self.state.serialise(),
            ),
            to=player_id,
        )
        self.emit(NewPlayer(player=player.serialise()), exclude=player_id)
        self.emit_state_changed()
        return player

    def remove_player(self, player_id: str) -> None:
        player = self.players.pop(player_id, None)
        if not player:
            return
        logger.info("Room %s: player %s left", self.room_id, player_id)
        self.emit(PlayerDisconnected(player_id=player_id))
        self.emit_state_changed()
        if self.match.state is MatchState.LOBBY:
            self._maybe_start_match()
        elif self.match.state is MatchState.SHOP:
            self._maybe_leave_shop()

    def spawn_mob(self) -> Optional[Mob]:
        """Spawn timer callback: add one mob while the wave quota is unmet."""
        state = self.state
        if self.match.state is not MatchState.PLAYING or state.game_over:
            return None
        if state.mobs_spawned_this_wave >= state.mobs_per_wave:
            return None
        mob_id = f"mob_{self.mob_id_counter}"
        self.mob_id_counter += 1
        mob = Mob(
            id=mob_id,
            position=self.world.mob_spawn(self.random),
            hp=state.current_mob_hp,
            max_hp=state.current_mob_hp,
        )
        state.mobs[mob_id] = mob
        state.mobs_spawned_this_wave += 1
        return mob

    # ------------------------------------------------------------------
    # Intent processing
    # ------------------------------------------------------------------
    def handle_intent(self, player_id: str, intent: Intent) -> None:
        """Apply a client intent; intents illegal right now are ignored."""
        if player_id not in self.players:
            return
        if isinstance(intent, MoveInput):
            self.move_player(player_id, intent)
        elif isinstance(intent, ShootArrow):
            self.relay_shot(player_id, intent)
        elif isinstance(intent, ArrowHit):
            self.combat.apply_damage(player_id, intent.mob_id)
        elif isinstance(intent, ToggleReady):
            self.toggle_ready(player_id)
        elif isinstance(intent, ShopReady):
            self.toggle_shop_ready(player_id)
        elif isinstance(intent, BuyUpgrade):
            self.combat.buy_upgrade(player_id, intent.upgrade)
        elif isinstance(intent, ResetGame):
            self.reset()
        else:
            logger.debug("Room %s: unhandled intent %s", self.room_id, intent.type)

    def move_player(self, player_id: str, intent: MoveInput) -> bool:
        player = self.players.get(player_id)
        if not player:
            return False
        position = player.position
        previous = position.copy()
        if intent.up:
            position.y -= config.PLAYER_SPEED
        if intent.down:
            position.y += config.PLAYER_SPEED
        if intent.left:
            position.x -= config.PLAYER_SPEED
        if intent.right:
            position.x += config.PLAYER_SPEED
        self.world.clamp_player(position)
        if position == previous:
            return False
        self.emit(PlayerMoved(player=player.serialise()))
        return True

    def relay_shot(self, player_id: str, intent: ShootArrow) -> None:
        player = self.players.get(player_id)
        if not player:
            return
        self.emit(
            ArrowFired(
                player_id=player_id,
                start_x=player.position.x,
                start_y=player.position.y,
                target_x=intent.target_x,
                target_y=intent.target_y,
            ),
            exclude=player_id,
        )

    def apply_damage(self, player_id: str, mob_id: str) -> bool:
        return self.combat.apply_damage(player_id, mob_id)

    def buy_upgrade(self, player_id: str, upgrade_type: str) -> bool:
        return self.combat.buy_upgrade(player_id, upgrade_type)

    # ------------------------------------------------------------------
    # Match state machine
    # ------------------------------------------------------------------
    def toggle_ready(self, player_id: str) -> None:
        player = self.players.get(player_id)
        if not player or self.match.state is not MatchState.LOBBY:
            return
        player.ready = not player.ready
        self.emit_state_changed()
        self._maybe_start_match()

    def toggle_shop_ready(self, player_id: str) -> None:
        player = self.players.get(player_id)
        if not player or self.match.state is not MatchState.SHOP:
            return
        player.shop_ready = not player.shop_ready
        self.emit_state_changed()
        self._maybe_leave_shop()

    def _maybe_start_match(self) -> None:
        if self.players and all(player.ready for player in self.players.values()):
            self.start_match()

    def _maybe_leave_shop(self) -> None:
        if self.players and all(player.shop_ready for player in self.players.values()):
            self._start_wave(self.match.current_wave + 1)
            self.emit_state_changed()

    def start_match(self) -> None:
        """LOBBY -> PLAYING: reset per-match counters and launch wave 1."""
        self.state.reset()
        self.mob_id_counter = 0
        logger.info("Room %s: match started with %d players", self.room_id, len(self.players))
        self._start_wave(1)
        self.emit_state_changed()

    def _start_wave(self, wave: int) -> None:
        stats = compute_wave_stats(wave, len(self.players))
        self.match.state = MatchState.PLAYING
        self.match.current_wave = wave
        self.state.wave = wave
        self.state.mobs_spawned_this_wave = 0
        self.state.mobs_killed_this_wave = 0
        self.state.mobs_per_wave = stats.mobs_per_wave
        self.state.current_mob_hp = stats.mob_hp
        self.state.players_at_wave_start = len(self.players)
        self.scheduler.every(SPAWN_TIMER, spawn_interval(wave), self.spawn_mob)
        self.scheduler.every(TICK_TIMER, self.settings.tick_interval, self.tick)
        logger.info(
            "Room %s: wave %d started (%d mobs, %d hp)",
            self.room_id,
            wave,
            stats.mobs_per_wave,
            stats.mob_hp,
        )
        self.emit(
            WaveStatsNotice(
                wave=wave,
                mob_hp=stats.mob_hp,
                total_mobs=stats.mobs_per_wave,
                num_players=len(self.players),
            )
        )

    def _stop_timers(self) -> None:
        self.scheduler.cancel(SPAWN_TIMER)
        self.scheduler.cancel(TICK_TIMER)

    def is_wave_complete(self) -> bool:
        state = self.state
        return (
            self.match.state is MatchState.PLAYING
            and not state.game_over
            and state.mobs_spawned_this_wave >= state.mobs_per_wave
            and not state.mobs
        )

    def check_wave_complete(self) -> bool:
        """Advance the match if the current wave is cleared.

        Safe to call every tick: when the wave is not complete nothing
        happens, and after a transition the condition no longer holds.
        """
        if not self.is_wave_complete():
            return False
        completed = self.match.current_wave
        if completed >= self.match.max_waves:
            self._stop_timers()
            self.match.state = MatchState.VICTORY
            logger.info("Room %s: victory after wave %d", self.room_id, completed)
            self.emit(WaveComplete(wave=completed, next_wave=None))
            self.emit_state_changed()
            return True

        self.emit(WaveComplete(wave=completed, next_wave=completed + 1))
        if self.settings.shop_enabled:
            self._stop_timers()
            self.match.state = MatchState.SHOP
            for player in self.players.values():
                player.shop_ready = False
            logger.info("Room %s: wave %d cleared, shop open", self.room_id, completed)
            self.emit(
                ShopOpened(
                    wave=completed,
                    prices={
                        player_id: progression.upgrade_prices(player)
                        for player_id, player in self.players.items()
                    },
                )
            )
        else:
            logger.info("Room %s: wave %d cleared", self.room_id, completed)
            self._start_wave(completed + 1)
        self.emit_state_changed()
        return True

    def reset(self) -> None:
        """Any state -> LOBBY with every counter and player stat cleared."""
        self._stop_timers()
        self.match.state = MatchState.LOBBY
        self.match.current_wave = 0
        self.state.reset()
        self.mob_id_counter = 0
        for player in self.players.values():
            player.reset_progress()
            player.position = self.world.player_spawn(self.random)
        logger.info("Room %s: game reset", self.room_id)
        self.emit_state_changed()
        self.emit(GameReset(players=self._player_dump(), game_state=self.state.serialise()))

    # ------------------------------------------------------------------
    # Simulation tick
    # ------------------------------------------------------------------
    def tick(self) -> None:
        """Tick timer callback: move mobs, then look for wave completion."""
        if self.match.state is not MatchState.PLAYING or self.state.game_over:
            return
        self.pathing.update()
        self.check_wave_complete()

    def breach_core(self, mob: Mob) -> None:
        """Called by the pathing system when ``mob`` reaches the core."""
        state = self.state
        state.core_hp -= config.CORE_BREACH_DAMAGE
        if state.core_hp > 0:
            return
        state.core_hp = 0
        state.game_over = True
        self._stop_timers()
        logger.info("Room %s: core destroyed on wave %d", self.room_id, state.wave)
        self.emit(GameOver(wave=state.wave))

    # ------------------------------------------------------------------
    # Broadcasting
    # ------------------------------------------------------------------
    def emit(self, message: Message, to: Optional[str] = None, exclude: Optional[str] = None) -> None:
        self.outbox.append(Envelope(message=message, to=to, exclude=exclude))

    def drain(self) -> List[Envelope]:
        envelopes = self.outbox
        self.outbox = []
        return envelopes

    def emit_state_changed(self) -> None:
        self.emit(
            GameStateChanged(
                state=self.match.state.value,
                current_wave=self.match.current_wave,
                max_waves=self.match.max_waves,
                total_gold=sum(player.gold for player in self.players.values()),
                players=[
                    {
                        "id": player.id,
                        "ready": player.ready,
                        "shop_ready": player.shop_ready,
                        "gold": player.gold,
                        "kills": player.kills,
                        "level": player.level,
                    }
                    for player in self.players.values()
                ],
            )
        )

    def publish_state(self) -> None:
        """Broadcast timer callback: queue a full snapshot for the room."""
        self.emit(self.snapshot())

    def snapshot(self) -> GameStateUpdate:
        return GameStateUpdate(
            core_hp=self.state.core_hp,
            wave=self.state.wave,
            mobs=self.state.mob_list(),
            game_over=self.state.game_over,
            match_state=self.match.state.value,
            current_wave=self.match.current_wave,
            max_waves=self.match.max_waves,
        )

    def _player_dump(self) -> Dict[str, Dict[str, object]]:
        return {player_id: player.serialise() for player_id, player in self.players.items()}


__all__ = ["DefenseGame", "RoomFullError"]
