"""Authoritative server for the Core Defense cooperative wave-defense game."""

from .config import RoomSettings
from .game import DefenseGame, RoomFullError
from .rooms import GameRoom, RoomManager

__all__ = ["DefenseGame", "GameRoom", "RoomFullError", "RoomManager", "RoomSettings"]
