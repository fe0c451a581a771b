"""
In-memory host for running a game mode without the game engine.
Keeps players, entities, squads, objectives and a simulated clock.
Rules and global events are delivered one at a time, in due-time order.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from marioberg.engine.definitions import StaticDefinitions, load_static_definitions
from marioberg.engine.host import (
    ALLY,
    CONSTRUCTION_COMPLETE,
    ENEMY,
    OBJECTIVE_INCOMPLETE,
    ConstructionHandler,
    HostServices,
    Presentation,
)
from marioberg.engine.lifecycle import GameModeLifecycle
from marioberg.engine.state import (
    OUTCOME_ACTIVE,
    OUTCOME_DEFEATED,
    OUTCOME_VICTORIOUS,
    ConstructionEvent,
    EntityBlueprint,
    Player,
    Position,
    SquadBlueprint,
    TownCenter,
)

logger = logging.getLogger(__name__)

# Used for civilizations without a mapped town center blueprint
FALLBACK_TOWN_CENTER = EntityBlueprint("building_town_center", frozenset({"building", "town_center"}))
START_POSITION_SPACING = 200.0


@dataclass
class Entity:
    entity_id: int
    owner_id: int | None
    blueprint: EntityBlueprint
    position: Position
    constructed: bool = True
    production_multiplier: float = 1.0


@dataclass
class Squad:
    squad_id: int
    owner_id: int
    blueprint: SquadBlueprint
    position: Position
    formation: str | None = None


@dataclass
class Objective:
    """Progress widget shown to one player."""
    objective_id: int
    player_id: int
    title: str
    icon: str
    current: int = 0
    maximum: int = 0
    progress: float = 0.0
    state: str = OBJECTIVE_INCOMPLETE
    visible: bool = False
    popups: int = 0


@dataclass(order=True)
class _Rule:
    due: float
    seq: int
    rule_id: int = field(compare=False)
    callback: Callable[[], None] = field(compare=False)
    interval: float | None = field(default=None, compare=False)


class SimulatedHost(HostServices):
    """
    Host services backed by plain Python state.

    Every player starts with a town center; start positions are spread along
    the x axis unless given. Time only moves through advance().
    """

    def __init__(
        self,
        players: list[Player],
        definitions: StaticDefinitions | None = None,
        start_positions: dict[int, Position] | None = None,
    ):
        if not players:
            raise ValueError("A match needs at least one player")
        ids = [p.player_id for p in players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate player ids: {ids}")
        if sum(1 for p in players if p.is_local) > 1:
            raise ValueError("At most one player can be local")

        self.definitions = definitions if definitions is not None else load_static_definitions()
        self._players: dict[int, Player] = {p.player_id: p for p in sorted(players, key=lambda p: p.player_id)}
        self.game_mode: GameModeLifecycle | None = None

        self.clock = 0.0
        self._rules: list[_Rule] = []
        self._active_rules: set[int] = set()
        self._next_id = 1
        self._handlers: list[tuple[ConstructionHandler, str]] = []
        self._game_over_scheduled = False
        self.torn_down = False

        self.entities: dict[int, Entity] = {}
        self.squads: dict[int, Squad] = {}
        self.squad_groups: dict[str, list[int]] = {}
        self.objectives: dict[int, Objective] = {}
        self.resources: dict[int, dict[str, int]] = {pid: {} for pid in self._players}
        self.ages: dict[int, int] = {}
        self.population_caps: dict[int, int] = {}
        self.revealed_areas: list[tuple[Position, float, float]] = []
        self.sounds: list[str] = []
        self.stingers: list[str] = []
        self.event_cues: list[dict[str, Any]] = []
        self.game_over_messages: list[dict[str, Any]] = []
        self.selection_clears = 0
        self.taskbar_visible = True
        self.tribute_enabled = False
        self.diplomacy_enabled = True

        start_positions = start_positions or {}
        for index, player in enumerate(self._players.values()):
            position = start_positions.get(
                player.player_id, Position(START_POSITION_SPACING * index, 0.0, 0.0))
            self._create_entity(player.player_id, self._town_center_blueprint(player), position)

    # ===== Match driving =====

    def start(self, game_mode: GameModeLifecycle, options: dict[str, Any] | None = None) -> None:
        """Attach a game mode and run it from setup through start."""
        self.game_mode = game_mode
        game_mode.on_setup(options)
        game_mode.on_pre_init()
        game_mode.on_init()
        game_mode.on_start()
        self._drain()

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every rule that comes due on the way."""
        if seconds < 0:
            raise ValueError("Cannot advance the clock backwards")
        target = self.clock + seconds
        while self._rules and self._rules[0].due <= target:
            rule = heapq.heappop(self._rules)
            if rule.rule_id not in self._active_rules:
                continue
            self.clock = rule.due
            if rule.interval is None:
                self._active_rules.discard(rule.rule_id)
            else:
                self._push(rule.rule_id, rule.callback, rule.due + rule.interval, rule.interval)
            rule.callback()
        self.clock = target

    def complete_construction(self, player_id: int | None, blueprint_name: str,
                              position: Position | None = None) -> int:
        """
        Finish a building and deliver the construction-complete event.
        player_id None models a building placed by script or tooling.
        """
        self._require_running()
        blueprint = self.definitions.entity_blueprints.get(blueprint_name)
        if blueprint is None:
            raise ValueError(f"Unknown entity blueprint: {blueprint_name}")
        builder = self._player(player_id) if player_id is not None else None
        if position is None:
            town_center = self.find_town_center(player_id) if player_id is not None else None
            position = town_center.position if town_center else Position(0.0, 0.0, 0.0)
        entity = self._create_entity(player_id, blueprint, position)

        event = ConstructionEvent(builder=builder, blueprint=blueprint, entity_id=entity.entity_id)
        for handler, event_type in list(self._handlers):
            if event_type == CONSTRUCTION_COMPLETE:
                handler(event)
        self._drain()
        return entity.entity_id

    def eliminate(self, player_id: int, reason: str = "annihilation") -> None:
        """Remove a player from play and notify the game mode."""
        self._require_running()
        player = self._player(player_id)
        if player.is_eliminated:
            return
        player.is_eliminated = True
        if player.outcome == OUTCOME_ACTIVE:
            player.outcome = OUTCOME_DEFEATED
        if self.game_mode is not None:
            self.game_mode.on_player_defeated(player, reason)
        self._check_decided()
        self._drain()

    def teardown(self) -> None:
        """End the session. Pending rules never fire and handlers are dropped."""
        self._rules.clear()
        self._active_rules.clear()
        self._handlers.clear()
        self.torn_down = True

    def entities_of_type(self, player_id: int, type_name: str) -> list[Entity]:
        return [
            e for e in self.entities.values()
            if e.owner_id == player_id and e.blueprint.is_of_type(type_name)
        ]

    @property
    def pending_rules(self) -> int:
        return len(self._active_rules)

    @property
    def decided(self) -> bool:
        return all(p.outcome != OUTCOME_ACTIVE for p in self._players.values())

    # ===== HostServices: players =====

    def players(self) -> list[Player]:
        return list(self._players.values())

    def get_player(self, player_id: int) -> Player | None:
        return self._players.get(player_id)

    def local_player(self) -> Player | None:
        return next((p for p in self._players.values() if p.is_local), None)

    def relationship(self, player_id: int, other_id: int) -> str:
        player = self._player(player_id)
        other = self._player(other_id)
        if player.player_id == other.player_id or player.team == other.team:
            return ALLY
        return ENEMY

    def set_current_age(self, player_id: int, age: int) -> None:
        self._player(player_id)
        self.ages[player_id] = age

    def set_resource(self, player_id: int, resource: str, amount: int) -> None:
        self._player(player_id)
        self.resources[player_id][resource] = amount

    def add_resource(self, player_id: int, resource: str, amount: int) -> None:
        self._player(player_id)
        totals = self.resources[player_id]
        totals[resource] = totals.get(resource, 0) + amount

    def set_max_population(self, player_id: int, cap: int) -> None:
        self._player(player_id)
        self.population_caps[player_id] = cap

    def set_tribute_enabled(self, enabled: bool) -> None:
        self.tribute_enabled = enabled

    def set_diplomacy_enabled(self, enabled: bool) -> None:
        self.diplomacy_enabled = enabled

    # ===== HostServices: entities and squads =====

    def find_town_center(self, player_id: int) -> TownCenter | None:
        for entity in self.entities_of_type(player_id, "town_center"):
            if entity.constructed:
                return TownCenter(entity_id=entity.entity_id, position=entity.position)
        return None

    def reveal_area(self, position: Position, radius: float, duration: float) -> None:
        self.revealed_areas.append((position, radius, duration))

    def apply_production_modifier(self, entity_id: int, multiplier: float) -> None:
        entity = self.entities.get(entity_id)
        if entity is None:
            raise KeyError(f"Unknown entity: {entity_id}")
        entity.production_multiplier *= multiplier

    def spawn_building(self, player_id: int, blueprint: EntityBlueprint, position: Position) -> int:
        self._player(player_id)
        return self._create_entity(player_id, blueprint, position).entity_id

    def deploy_squads(
        self,
        player_id: int,
        squad_group: str,
        blueprint: SquadBlueprint,
        count: int,
        position: Position,
    ) -> list[int]:
        self._player(player_id)
        group = self.squad_groups.setdefault(squad_group, [])
        squad_ids = []
        for _ in range(count):
            squad = Squad(self._new_id(), player_id, blueprint, position)
            self.squads[squad.squad_id] = squad
            group.append(squad.squad_id)
            squad_ids.append(squad.squad_id)
        return squad_ids

    def formation_move(self, squad_group: str, ability: str, position: Position) -> None:
        if squad_group not in self.squad_groups:
            raise KeyError(f"Unknown squad group: {squad_group}")
        if ability not in self.definitions.abilities:
            raise ValueError(f"Unknown ability blueprint: {ability}")
        for squad_id in self.squad_groups[squad_group]:
            squad = self.squads[squad_id]
            squad.formation = ability
            squad.position = position

    # ===== HostServices: objectives and presentation =====

    def create_objective(self, player_id: int, title: str, icon: str) -> Objective:
        self._player(player_id)
        objective = Objective(self._new_id(), player_id, title, icon)
        self.objectives[objective.objective_id] = objective
        return objective

    def update_objective(
        self,
        objective: Objective,
        *,
        current: int | None = None,
        maximum: int | None = None,
        progress: float | None = None,
        state: str | None = None,
        visible: bool | None = None,
    ) -> None:
        if current is not None:
            objective.current = current
        if maximum is not None:
            objective.maximum = maximum
        if progress is not None:
            objective.progress = progress
        if state is not None:
            objective.state = state
        if visible is not None:
            objective.visible = visible

    def objective_popup(self, objective: Objective, title: str) -> None:
        objective.popups += 1

    def play_sound(self, sound: str) -> None:
        self.sounds.append(sound)

    def play_stinger(self, stinger: str) -> None:
        self.stingers.append(stinger)

    def event_cue(self, player_id: int, text: str, sound: str) -> None:
        self.event_cues.append({"player_id": player_id, "text": text, "sound": sound, "time": self.clock})

    def clear_selection(self) -> None:
        self.selection_clears += 1

    def set_taskbar_visible(self, visible: bool) -> None:
        self.taskbar_visible = visible

    def show_game_over_message(self, player_id: int, message: dict[str, Any]) -> None:
        self.game_over_messages.append({"player_id": player_id, "time": self.clock, **message})

    # ===== HostServices: outcomes =====

    def declare_victorious(self, player_id: int, presentation: Presentation) -> None:
        self._declare(player_id, OUTCOME_VICTORIOUS, presentation)

    def declare_defeated(self, player_id: int, presentation: Presentation, reason: str) -> None:
        self._declare(player_id, OUTCOME_DEFEATED, presentation, reason)

    # ===== HostServices: rules =====

    def run_once(self, callback: Callable[[], None], delay: float) -> int:
        self._require_running()
        rule_id = self._new_id()
        self._push(rule_id, callback, self.clock + delay, None)
        return rule_id

    def run_every(self, callback: Callable[[], None], interval: float) -> int:
        self._require_running()
        if interval <= 0:
            raise ValueError("Interval must be positive")
        rule_id = self._new_id()
        self._push(rule_id, callback, self.clock + interval, interval)
        return rule_id

    def remove_rule(self, rule_id: int) -> None:
        self._active_rules.discard(rule_id)

    def add_global_event(self, handler: ConstructionHandler, event_type: str) -> None:
        self._require_running()
        self._handlers.append((handler, event_type))

    def remove_global_event(self, handler: ConstructionHandler) -> None:
        self._handlers = [(h, t) for h, t in self._handlers if h != handler]

    # ===== Internals =====

    def _declare(
        self,
        player_id: int,
        outcome: str,
        presentation: Presentation,
        reason: str | None = None,
    ) -> None:
        player = self._player(player_id)
        if player.outcome != OUTCOME_ACTIVE:
            return
        player.outcome = outcome
        logger.info("Player %d is %s", player_id, outcome)
        try:
            if outcome == OUTCOME_DEFEATED and self.game_mode is not None:
                self.game_mode.on_player_defeated(player, reason)
            presentation(player_id)
        finally:
            self._check_decided()

    def _check_decided(self) -> None:
        if self._game_over_scheduled or not self.decided or self.game_mode is None:
            return
        self._game_over_scheduled = True
        self.run_once(self.game_mode.on_game_over, 0)

    def _drain(self) -> None:
        """Fire rules that are already due without moving the clock."""
        self.advance(0)

    def _push(self, rule_id: int, callback: Callable[[], None], due: float, interval: float | None) -> None:
        self._active_rules.add(rule_id)
        heapq.heappush(self._rules, _Rule(due, self._new_id(), rule_id, callback, interval))

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _player(self, player_id: int) -> Player:
        player = self._players.get(player_id)
        if player is None:
            raise KeyError(f"Unknown player: {player_id}")
        return player

    def _create_entity(self, owner_id: int | None, blueprint: EntityBlueprint, position: Position) -> Entity:
        entity = Entity(self._new_id(), owner_id, blueprint, position)
        self.entities[entity.entity_id] = entity
        return entity

    def _town_center_blueprint(self, player: Player) -> EntityBlueprint:
        civ = self.definitions.civilizations.get(player.civilization)
        if civ is None:
            return FALLBACK_TOWN_CENTER
        return self.definitions.entity_blueprints.get(civ.town_center_blueprint, FALLBACK_TOWN_CENTER)

    def _require_running(self) -> None:
        if self.torn_down:
            raise RuntimeError("Match session has been torn down")
