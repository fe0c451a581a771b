"""
Match state representation.
Players, blueprints and construction events are host-owned and only referenced here.
ObjectiveProgress is the one piece of state the win condition owns.
"""

from dataclasses import dataclass, field
from typing import Any

# Per-player outcomes (terminal once set)
OUTCOME_ACTIVE = "active"
OUTCOME_VICTORIOUS = "victorious"
OUTCOME_DEFEATED = "defeated"

# Tracker states
STATE_IN_PROGRESS = "in_progress"
STATE_COMPLETED = "completed"


@dataclass(frozen=True)
class Position:
    """World position. y is height and is left alone by offsets."""
    x: float
    y: float
    z: float

    def offset(self, dx: float, dz: float) -> "Position":
        return Position(self.x + dx, self.y, self.z + dz)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class EntityBlueprint:
    """Template for a building or other entity. Types are shared across civilizations (e.g. "house")."""
    name: str
    types: frozenset[str] = frozenset()

    def is_of_type(self, type_name: str) -> bool:
        return type_name in self.types


@dataclass(frozen=True)
class SquadBlueprint:
    """Template for a unit squad."""
    name: str
    types: frozenset[str] = frozenset()

    def is_of_type(self, type_name: str) -> bool:
        return type_name in self.types


@dataclass
class Player:
    """A seat in the match."""
    player_id: int
    name: str
    civilization: str
    team: int
    is_local: bool = False  # True for the seat whose screen this session renders
    is_eliminated: bool = False
    outcome: str = OUTCOME_ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "civilization": self.civilization,
            "team": self.team,
            "is_local": self.is_local,
            "is_eliminated": self.is_eliminated,
            "outcome": self.outcome,
        }


@dataclass(frozen=True)
class TownCenter:
    """A player's starting town center."""
    entity_id: int
    position: Position


@dataclass(frozen=True)
class ConstructionEvent:
    """Delivered once per finished building. builder is None for buildings placed by script or tooling."""
    builder: Player | None
    blueprint: EntityBlueprint
    entity_id: int | None = None


@dataclass
class ObjectiveProgress:
    """
    Progress toward the house goal.
    current_count never decreases and never exceeds required_count;
    completed flips to True at most once.
    """
    current_count: int
    required_count: int
    completed: bool = False

    @property
    def fraction(self) -> float:
        if self.required_count <= 0:
            return 1.0
        return self.current_count / self.required_count

    @property
    def state(self) -> str:
        return STATE_COMPLETED if self.completed else STATE_IN_PROGRESS


@dataclass
class MatchLog:
    """Ordered record of game events emitted during a match."""
    entries: list = field(default_factory=list)

    def extend(self, events: list) -> None:
        self.entries.extend(events)

    def of_type(self, event_type: str) -> list:
        return [e for e in self.entries if e.type == event_type]

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.entries]
