"""Shared fixtures and test doubles."""
from __future__ import annotations

import asyncio
import random
from typing import Any, Callable, Dict, List, Tuple

import pytest

from coredefense.config import RoomSettings
from coredefense.game import DefenseGame


class ManualScheduler:
    """Scheduler double: records timers and fires them on demand."""

    def __init__(self) -> None:
        self.timers: Dict[str, Tuple[float, Callable[[], None]]] = {}
        self.started: List[str] = []

    def every(self, name: str, interval: float, callback: Callable[[], None]) -> None:
        self.timers[name] = (interval, callback)
        self.started.append(name)

    def cancel(self, name: str) -> None:
        self.timers.pop(name, None)

    def cancel_all(self) -> None:
        self.timers.clear()

    def is_active(self, name: str) -> bool:
        return name in self.timers

    @property
    def active(self) -> List[str]:
        return sorted(self.timers)

    def interval(self, name: str) -> float:
        return self.timers[name][0]

    def fire(self, name: str, times: int = 1) -> None:
        for _ in range(times):
            entry = self.timers.get(name)
            if entry is None:
                return
            entry[1]()


class FakeWebSocket:
    """In-memory stand-in for a FastAPI websocket."""

    def __init__(self, fail: bool = False, yield_on_send: bool = False) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail
        self.yield_on_send = yield_on_send

    async def send_json(self, data: Dict[str, Any]) -> None:
        if self.yield_on_send:
            await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("websocket is closed")
        self.sent.append(data)

    def types(self) -> List[str]:
        return [message["type"] for message in self.sent]

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [message for message in self.sent if message["type"] == message_type]


def message_types(envelopes) -> List[str]:
    return [envelope.message.type for envelope in envelopes]


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def settings() -> RoomSettings:
    return RoomSettings()


@pytest.fixture()
def game(scheduler: ManualScheduler, settings: RoomSettings) -> DefenseGame:
    return DefenseGame("alpha", scheduler, settings=settings, rng=random.Random(7))


def make_game(scheduler: ManualScheduler, **overrides: Any) -> DefenseGame:
    return DefenseGame(
        "alpha", scheduler, settings=RoomSettings(**overrides), rng=random.Random(7)
    )


def kill_mob(game: DefenseGame, player_id: str, mob_id: str) -> None:
    while mob_id in game.state.mobs:
        game.apply_damage(player_id, mob_id)


def clear_wave(game: DefenseGame, scheduler: ManualScheduler, player_id: str) -> None:
    """Spawn the whole quota and shoot every mob down."""
    scheduler.fire("spawn", game.state.mobs_per_wave)
    for mob_id in list(game.state.mobs):
        kill_mob(game, player_id, mob_id)
