"""Systems that advance or resolve a room's simulation."""

from .combat import CombatSystem
from .pathing import PathingSystem

__all__ = ["CombatSystem", "PathingSystem"]
