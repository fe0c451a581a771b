"""
Game mode lifecycle.
The host calls these hooks at fixed points of a match:
setup -> pre_init -> init -> start -> (player defeated)* -> game over.
"""

import logging
from abc import ABC, abstractmethod
from functools import partial
from typing import Any

from marioberg.engine import (
    DEFEAT_MESSAGE_SOUND,
    DEFEAT_STINGER,
    EVENT_CUE_SOUND,
    FORMATION_ABILITY,
    GAMEOVER_OBJECTIVE_TIME,
    GRANTED_RESOURCES,
    RESOURCE_GRANT_INTERVAL,
    RESOURCES_GRANTED_TEXT,
    SEED_HOUSE_OFFSET,
    SPAWN_UNITS_DELAY,
    SPEARMEN_PER_PLAYER,
    SPEARMEN_RALLY_OFFSET,
    SPEARMEN_SPAWN_OFFSET,
    STARTING_AGE,
    STARTING_POPULATION_CAP,
    STARTING_RESOURCES,
    TOWN_CENTER_PRODUCTION_MULTIPLIER,
    TOWN_CENTER_REVEAL_DURATION,
    TOWN_CENTER_REVEAL_RADIUS,
    VICTORY_MESSAGE_SOUND,
    VICTORY_STINGER,
)
from marioberg.engine.definitions import (
    ModConfig,
    StaticDefinitions,
    build_mod_config,
    house_blueprint_for,
    load_static_definitions,
    spearman_blueprint_for,
)
from marioberg.engine.events import (
    building_spawned,
    game_over,
    match_started,
    objective_created,
    options_applied,
    player_defeated,
    resources_granted,
    spawn_skipped,
    town_center_found,
    units_spawned,
)
from marioberg.engine.host import (
    CONSTRUCTION_COMPLETE,
    OBJECTIVE_COMPLETE,
    OBJECTIVE_FAILED,
    OBJECTIVE_INCOMPLETE,
    HostServices,
)
from marioberg.engine.state import ConstructionEvent, MatchLog, Player, TownCenter
from marioberg.engine.tracker import WinConditionTracker

logger = logging.getLogger(__name__)


class GameModeLifecycle(ABC):
    """Hooks the host invokes on a game mode during a match."""

    @abstractmethod
    def on_setup(self, options: dict[str, Any] | None) -> None:
        """Read host-selected lobby options. Called once during load."""

    @abstractmethod
    def on_pre_init(self) -> None:
        """Called before initialization, ahead of other modules."""

    @abstractmethod
    def on_init(self) -> None:
        """Called on match initialization before players get control."""

    @abstractmethod
    def on_start(self) -> None:
        """Called once initialization is done and the match fades in."""

    @abstractmethod
    def on_player_defeated(self, player: Player, reason: str) -> None:
        """Called when a player is eliminated from play."""

    @abstractmethod
    def on_game_over(self) -> None:
        """Called when the match is about to end. Removes rules and handlers."""


class HouseRaceGameMode(GameModeLifecycle):
    """
    First to five houses.

    Each player starts in the Imperial Age with a pre-placed house, a faster
    town center and a squad of spearmen. Resources arrive every minute in the
    amount chosen in the lobby. Completing the house that brings the objective
    to its goal wins the match for that player and its allies.
    """

    def __init__(self, host: HostServices, definitions: StaticDefinitions | None = None):
        self.host = host
        self.definitions = definitions if definitions is not None else load_static_definitions()
        self.config: ModConfig | None = None
        self.tracker: WinConditionTracker | None = None
        self.log = MatchLog()
        self.local_player: Player | None = None
        self.town_centers: dict[int, TownCenter] = {}
        self.objective = None
        self._resource_rule_id: int | None = None
        self._listening = False

    # ===== Lifecycle =====

    def on_setup(self, options: dict[str, Any] | None) -> None:
        self.config = build_mod_config(options, self.definitions.economy_presets)
        self.tracker = WinConditionTracker(
            self.config,
            self.host,
            winner_presentation=self.winner_presentation,
            loser_presentation=self.loser_presentation,
            log=self.log,
        )
        self.log.extend([options_applied(self.config.economy_option, self.config.resource_amount)])

    def on_pre_init(self) -> None:
        self.host.set_tribute_enabled(True)

    def on_init(self) -> None:
        self._require_setup()
        self.local_player = self.host.local_player()

        self.find_town_centers()
        self.spawn_buildings()
        self.host.run_once(self.spawn_units, SPAWN_UNITS_DELAY)
        self._resource_rule_id = self.host.run_every(self.give_resources, RESOURCE_GRANT_INTERVAL)
        self.host.add_global_event(self.on_construction_complete, CONSTRUCTION_COMPLETE)
        self._listening = True

        for player in self.host.players():
            self.host.set_current_age(player.player_id, STARTING_AGE)
            for resource, amount in STARTING_RESOURCES.items():
                self.host.set_resource(player.player_id, resource, amount)
            self.host.set_max_population(player.player_id, STARTING_POPULATION_CAP)

        self.host.set_diplomacy_enabled(False)
        self.host.set_tribute_enabled(True)

    def on_start(self) -> None:
        self.setup_objective()
        self.log.extend([match_started(
            [p.player_id for p in self.host.players()],
            self.local_player.player_id if self.local_player else None,
        )])

    def on_player_defeated(self, player: Player, reason: str) -> None:
        logger.info("Player %d defeated (%s)", player.player_id, reason)
        self.log.extend([player_defeated(player.player_id, reason)])

    def on_game_over(self) -> None:
        if self._listening:
            self.host.remove_global_event(self.on_construction_complete)
            self._listening = False
        if self._resource_rule_id is not None:
            self.host.remove_rule(self._resource_rule_id)
            self._resource_rule_id = None
        self.log.extend([game_over({p.player_id: p.outcome for p in self.host.players()})])

    # ===== Rules =====

    def on_construction_complete(self, event: ConstructionEvent) -> None:
        """Global event handler for finished buildings. The tracker records into the match log."""
        self._require_setup()
        self.tracker.on_construction_complete(event)

    def setup_objective(self) -> None:
        """Create the progress objective for the local player. Does nothing if it already exists."""
        self._require_setup()
        if self.objective is not None or self.local_player is None:
            return
        config = self.config
        progress = self.tracker.progress
        self.objective = self.host.create_objective(
            self.local_player.player_id, config.objective_title, config.objective_icon)
        self.host.update_objective(
            self.objective,
            state=OBJECTIVE_INCOMPLETE,
            visible=True,
            current=progress.current_count,
            maximum=progress.required_count,
            progress=progress.fraction,
        )
        self.tracker.objective = self.objective
        self.log.extend([objective_created(
            self.local_player.player_id,
            config.objective_title,
            progress.current_count,
            progress.required_count,
        )])

    def find_town_centers(self) -> None:
        """Record each player's town center, reveal it to everyone and speed up its production."""
        events = []
        for player in self.host.players():
            town_center = self.host.find_town_center(player.player_id)
            if town_center is None:
                logger.warning("Player %d has no town center", player.player_id)
                continue
            self.town_centers[player.player_id] = town_center
            self.host.reveal_area(
                town_center.position, TOWN_CENTER_REVEAL_RADIUS, TOWN_CENTER_REVEAL_DURATION)
            self.host.apply_production_modifier(
                town_center.entity_id, TOWN_CENTER_PRODUCTION_MULTIPLIER)
            events.append(town_center_found(
                player.player_id, town_center.entity_id, town_center.position.to_dict()))
        self.log.extend(events)

    def spawn_buildings(self) -> None:
        """Place a finished house next to each player's town center. These seed the objective count."""
        events = []
        for player in self.host.players():
            town_center = self.town_centers.get(player.player_id)
            blueprint = house_blueprint_for(player.civilization, self.definitions)
            if town_center is None or blueprint is None:
                events.append(self._skip_spawn(player, "house"))
                continue
            entity_id = self.host.spawn_building(
                player.player_id, blueprint, town_center.position.offset(*SEED_HOUSE_OFFSET))
            events.append(building_spawned(player.player_id, blueprint.name, entity_id))
        self.log.extend(events)

    def spawn_units(self) -> None:
        """Deploy a line of spearmen in front of each player's town center."""
        events = []
        for player in self.host.players():
            town_center = self.town_centers.get(player.player_id)
            blueprint = spearman_blueprint_for(player.civilization, self.definitions)
            if town_center is None or blueprint is None:
                events.append(self._skip_spawn(player, "spearmen"))
                continue
            squad_group = f"sg_player_spearmen_{player.player_id}"
            self.host.deploy_squads(
                player.player_id,
                squad_group,
                blueprint,
                SPEARMEN_PER_PLAYER,
                town_center.position.offset(*SPEARMEN_SPAWN_OFFSET),
            )
            self.host.formation_move(
                squad_group, FORMATION_ABILITY, town_center.position.offset(*SPEARMEN_RALLY_OFFSET))
            events.append(units_spawned(
                player.player_id, blueprint.name, SPEARMEN_PER_PLAYER, squad_group))
        self.log.extend(events)

    def give_resources(self) -> None:
        """Interval rule: grant the lobby-selected amount of every resource to every player."""
        self._require_setup()
        amount = self.config.resource_amount
        player_ids = []
        for player in self.host.players():
            for resource in GRANTED_RESOURCES:
                self.host.add_resource(player.player_id, resource, amount)
            player_ids.append(player.player_id)
            if player.is_local:
                self.host.event_cue(
                    player.player_id, f"{amount} {RESOURCES_GRANTED_TEXT}", EVENT_CUE_SOUND)
        self.log.extend([resources_granted(player_ids, amount, list(GRANTED_RESOURCES))])

    # ===== Presentations =====

    def winner_presentation(self, player_id: int) -> None:
        self._present(player_id, OBJECTIVE_COMPLETE, VICTORY_STINGER, {
            "end_type": "VICTORY",
            "sound": VICTORY_MESSAGE_SOUND,
            "video": "stinger_victory",
        })

    def loser_presentation(self, player_id: int) -> None:
        self._present(player_id, OBJECTIVE_FAILED, DEFEAT_STINGER, {
            "end_type": "DEFEAT",
            "sound": DEFEAT_MESSAGE_SOUND,
            "video": "stinger_defeat",
        })

    def _present(self, player_id: int, objective_state: str, stinger: str, message: dict[str, Any]) -> None:
        # Only the local seat renders the end-of-match UI.
        if self.local_player is None or player_id != self.local_player.player_id:
            return
        self.host.clear_selection()
        self.host.set_taskbar_visible(False)
        if self.objective is not None:
            self.host.update_objective(self.objective, state=objective_state)
            self.host.objective_popup(self.objective, self.config.objective_title)
        self.host.play_stinger(stinger)
        if self.objective is not None:
            self.host.update_objective(self.objective, visible=False)
        message = {"icon": self.config.objective_icon, "message": "", **message}
        self.host.run_once(
            partial(self.host.show_game_over_message, player_id, message),
            GAMEOVER_OBJECTIVE_TIME,
        )

    # ===== Helpers =====

    def _require_setup(self) -> None:
        if self.config is None or self.tracker is None:
            raise RuntimeError("Game mode has not been set up. Call on_setup first.")

    def _skip_spawn(self, player: Player, what: str):
        reason = (
            f"no {what} blueprint for civilization '{player.civilization}'"
            if player.player_id in self.town_centers
            else "no town center"
        )
        logger.warning("Skipping %s for player %d: %s", what, player.player_id, reason)
        return spawn_skipped(player.player_id, player.civilization, reason)
