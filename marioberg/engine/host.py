"""
Host services the game mode calls into.
The host owns players, entities, UI and time; the game mode only issues requests.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable

from marioberg.engine.state import (
    ConstructionEvent,
    EntityBlueprint,
    Player,
    Position,
    SquadBlueprint,
    TownCenter,
)

# Relationship between two players. A player is always its own ally.
ALLY = "ally"
ENEMY = "enemy"

# Global event types
CONSTRUCTION_COMPLETE = "construction_complete"

# Objective states
OBJECTIVE_INCOMPLETE = "incomplete"
OBJECTIVE_COMPLETE = "complete"
OBJECTIVE_FAILED = "failed"

Presentation = Callable[[int], None]
ConstructionHandler = Callable[[ConstructionEvent], None]


class HostServices(ABC):
    """Abstract interface for the engine a game mode runs inside."""

    # ----- Players -----

    @abstractmethod
    def players(self) -> list[Player]: ...

    @abstractmethod
    def get_player(self, player_id: int) -> Player | None: ...

    @abstractmethod
    def local_player(self) -> Player | None: ...

    @abstractmethod
    def relationship(self, player_id: int, other_id: int) -> str:
        """Return ALLY or ENEMY. Symmetric; a player is an ALLY of itself."""

    @abstractmethod
    def set_current_age(self, player_id: int, age: int) -> None: ...

    @abstractmethod
    def set_resource(self, player_id: int, resource: str, amount: int) -> None: ...

    @abstractmethod
    def add_resource(self, player_id: int, resource: str, amount: int) -> None: ...

    @abstractmethod
    def set_max_population(self, player_id: int, cap: int) -> None: ...

    @abstractmethod
    def set_tribute_enabled(self, enabled: bool) -> None: ...

    @abstractmethod
    def set_diplomacy_enabled(self, enabled: bool) -> None: ...

    # ----- Entities and squads -----

    @abstractmethod
    def find_town_center(self, player_id: int) -> TownCenter | None: ...

    @abstractmethod
    def reveal_area(self, position: Position, radius: float, duration: float) -> None: ...

    @abstractmethod
    def apply_production_modifier(self, entity_id: int, multiplier: float) -> None: ...

    @abstractmethod
    def spawn_building(self, player_id: int, blueprint: EntityBlueprint, position: Position) -> int:
        """Create, spawn and force-construct a building. Returns its entity id. Raises no construction event."""

    @abstractmethod
    def deploy_squads(
        self,
        player_id: int,
        squad_group: str,
        blueprint: SquadBlueprint,
        count: int,
        position: Position,
    ) -> list[int]: ...

    @abstractmethod
    def formation_move(self, squad_group: str, ability: str, position: Position) -> None: ...

    # ----- Objectives and presentation -----

    @abstractmethod
    def create_objective(self, player_id: int, title: str, icon: str) -> Any: ...

    @abstractmethod
    def update_objective(
        self,
        objective: Any,
        *,
        current: int | None = None,
        maximum: int | None = None,
        progress: float | None = None,
        state: str | None = None,
        visible: bool | None = None,
    ) -> None: ...

    @abstractmethod
    def objective_popup(self, objective: Any, title: str) -> None: ...

    @abstractmethod
    def play_sound(self, sound: str) -> None: ...

    @abstractmethod
    def play_stinger(self, stinger: str) -> None: ...

    @abstractmethod
    def event_cue(self, player_id: int, text: str, sound: str) -> None: ...

    @abstractmethod
    def clear_selection(self) -> None: ...

    @abstractmethod
    def set_taskbar_visible(self, visible: bool) -> None: ...

    @abstractmethod
    def show_game_over_message(self, player_id: int, message: dict[str, Any]) -> None: ...

    # ----- Outcomes -----

    @abstractmethod
    def declare_victorious(self, player_id: int, presentation: Presentation) -> None: ...

    @abstractmethod
    def declare_defeated(self, player_id: int, presentation: Presentation, reason: str) -> None:
        """Mark a player defeated. The host reports it to the game mode's on_player_defeated."""

    # ----- Rules -----

    @abstractmethod
    def run_once(self, callback: Callable[[], None], delay: float) -> int: ...

    @abstractmethod
    def run_every(self, callback: Callable[[], None], interval: float) -> int: ...

    @abstractmethod
    def remove_rule(self, rule_id: int) -> None: ...

    @abstractmethod
    def add_global_event(self, handler: ConstructionHandler, event_type: str) -> None: ...

    @abstractmethod
    def remove_global_event(self, handler: ConstructionHandler) -> None: ...
