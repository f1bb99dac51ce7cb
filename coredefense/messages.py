"""Wire protocol: tagged client intents and server broadcasts.

Every frame is a JSON object carrying a ``type`` field. Inbound frames are
parsed into one of the intent classes below by :func:`parse_intent`; frames
with an unknown type or malformed fields are dropped. Outbound messages are
dataclasses whose :meth:`Message.serialise` output is sent as-is.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Type

from . import config

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Client -> server
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Intent:
    """Base class for client requests."""

    type: ClassVar[str] = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Intent":
        return cls()


@dataclass(frozen=True)
class JoinRoom(Intent):
    type: ClassVar[str] = "join_room"

    room: str = config.DEFAULT_ROOM_NAME

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "JoinRoom":
        return cls(room=normalise_room_name(payload.get("room")))


@dataclass(frozen=True)
class ToggleReady(Intent):
    type: ClassVar[str] = "toggle_ready"


@dataclass(frozen=True)
class ShopReady(Intent):
    type: ClassVar[str] = "shop_ready"


@dataclass(frozen=True)
class BuyUpgrade(Intent):
    type: ClassVar[str] = "buy_upgrade"

    upgrade: str = "damage"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BuyUpgrade":
        upgrade = payload.get("upgrade", "damage")
        if not isinstance(upgrade, str):
            raise TypeError("upgrade must be a string")
        return cls(upgrade=upgrade)


@dataclass(frozen=True)
class MoveInput(Intent):
    type: ClassVar[str] = "input"

    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MoveInput":
        return cls(
            up=bool(payload.get("up")),
            down=bool(payload.get("down")),
            left=bool(payload.get("left")),
            right=bool(payload.get("right")),
        )


@dataclass(frozen=True)
class ShootArrow(Intent):
    type: ClassVar[str] = "shoot_arrow"

    target_x: float = 0.0
    target_y: float = 0.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ShootArrow":
        return cls(target_x=_number(payload, "target_x"), target_y=_number(payload, "target_y"))


@dataclass(frozen=True)
class ArrowHit(Intent):
    type: ClassVar[str] = "arrow_hit"

    mob_id: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ArrowHit":
        mob_id = payload["mob_id"]
        if not isinstance(mob_id, str):
            raise TypeError("mob_id must be a string")
        return cls(mob_id=mob_id)


@dataclass(frozen=True)
class ResetGame(Intent):
    type: ClassVar[str] = "reset_game"


INTENTS: Dict[str, Type[Intent]] = {
    intent.type: intent
    for intent in (
        JoinRoom,
        ToggleReady,
        ShopReady,
        BuyUpgrade,
        MoveInput,
        ShootArrow,
        ArrowHit,
        ResetGame,
    )
}


def parse_intent(data: Any) -> Optional[Intent]:
    """Build an intent from a decoded frame, or ``None`` if it is unusable."""
    if not isinstance(data, Mapping):
        logger.debug("Dropping non-object frame: %r", data)
        return None
    intent_cls = INTENTS.get(data.get("type"))
    if intent_cls is None:
        logger.debug("Dropping frame with unknown type: %r", data.get("type"))
        return None
    try:
        return intent_cls.from_payload(data)
    except (KeyError, TypeError, ValueError) as exc:
        logger.debug("Dropping malformed %s frame: %s", intent_cls.type, exc)
        return None


def normalise_room_name(raw: Any) -> str:
    if not isinstance(raw, str):
        return config.DEFAULT_ROOM_NAME
    name = raw.strip()[: config.ROOM_NAME_MAX_LENGTH]
    return name or config.DEFAULT_ROOM_NAME


def _number(payload: Mapping[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a number")
    return float(value)


# ----------------------------------------------------------------------
# Server -> client
# ----------------------------------------------------------------------
@dataclass
class Message:
    """Base class for broadcasts."""

    type: ClassVar[str] = ""

    def serialise(self) -> Dict[str, Any]:
        return {"type": self.type, **asdict(self)}


@dataclass
class RoomJoined(Message):
    type: ClassVar[str] = "room_joined"

    room: str
    player_id: str
    max_players: int


@dataclass
class CurrentPlayers(Message):
    type: ClassVar[str] = "current_players"

    players: Dict[str, Dict[str, Any]]
    my_id: str
    match: Dict[str, Any]
    game_state: Dict[str, Any]


@dataclass
class NewPlayer(Message):
    type: ClassVar[str] = "new_player"

    player: Dict[str, Any]


@dataclass
class PlayerMoved(Message):
    type: ClassVar[str] = "player_moved"

    player: Dict[str, Any]


@dataclass
class ArrowFired(Message):
    type: ClassVar[str] = "arrow_fired"

    player_id: str
    start_x: float
    start_y: float
    target_x: float
    target_y: float


@dataclass
class GameStateUpdate(Message):
    type: ClassVar[str] = "game_state_update"

    core_hp: int
    wave: int
    mobs: List[Dict[str, Any]]
    game_over: bool
    match_state: str
    current_wave: int
    max_waves: int


@dataclass
class MobKilled(Message):
    type: ClassVar[str] = "mob_killed"

    mob_id: str
    by: Optional[str]
    position: Dict[str, float]


@dataclass
class WaveComplete(Message):
    type: ClassVar[str] = "wave_complete"

    wave: int
    next_wave: Optional[int]


@dataclass
class WaveStatsNotice(Message):
    type: ClassVar[str] = "wave_stats"

    wave: int
    mob_hp: int
    total_mobs: int
    num_players: int


@dataclass
class ShopOpened(Message):
    type: ClassVar[str] = "shop_opened"

    wave: int
    prices: Dict[str, Dict[str, int]]


@dataclass
class PlayerUpdate(Message):
    type: ClassVar[str] = "player_update"

    id: str
    gold: int
    kills: int
    level: int
    fire_rate: int
    damage: int
    upgrades: Dict[str, int] = field(default_factory=dict)


@dataclass
class GameOver(Message):
    type: ClassVar[str] = "game_over"

    wave: int


@dataclass
class GameStateChanged(Message):
    type: ClassVar[str] = "game_state_changed"

    state: str
    current_wave: int
    max_waves: int
    total_gold: int
    players: List[Dict[str, Any]]


@dataclass
class GameReset(Message):
    type: ClassVar[str] = "game_reset"

    players: Dict[str, Dict[str, Any]]
    game_state: Dict[str, Any]


@dataclass
class PlayerDisconnected(Message):
    type: ClassVar[str] = "player_disconnected"

    player_id: str


@dataclass
class RoomFull(Message):
    type: ClassVar[str] = "room_full"

    room: str
    max_players: int


@dataclass
class Envelope:
    """A broadcast plus its audience within the room.

    ``to`` restricts delivery to one member; ``exclude`` skips one member.
    With neither set the message goes to the whole room.
    """

    message: Message
    to: Optional[str] = None
    exclude: Optional[str] = None

    def recipients(self, member_ids: Iterable[str]) -> List[str]:
        if self.to is not None:
            return [member for member in member_ids if member == self.to]
        return [member for member in member_ids if member != self.exclude]
