"""
Win condition tracker.
Counts completed houses toward the objective and declares the match result once.
Handlers return the list of events they produced and, when given a match log,
record them there as they happen.
"""

import logging
from functools import partial
from typing import Callable

from marioberg.engine import PROGRESS_SOUND, WIN_REASON
from marioberg.engine.definitions import ModConfig
from marioberg.engine.events import (
    GameEvent,
    goal_reached,
    objective_progressed,
    player_victorious,
    presentation_failed,
)
from marioberg.engine.host import ALLY, HostServices, Presentation
from marioberg.engine.state import (
    OUTCOME_DEFEATED,
    OUTCOME_VICTORIOUS,
    ConstructionEvent,
    MatchLog,
    ObjectiveProgress,
    Player,
)

logger = logging.getLogger(__name__)


def _no_presentation(player_id: int) -> None:
    return None


def partition_players(
    players: list[Player],
    winner_id: int,
    relationship: Callable[[int, int], str],
) -> tuple[list[Player], list[Player]]:
    """
    Split players into (allies, enemies) of the winner.
    Every player lands in exactly one list; the winner is always an ally.
    """
    allies: list[Player] = []
    enemies: list[Player] = []
    for player in players:
        if player.player_id == winner_id or relationship(player.player_id, winner_id) == ALLY:
            allies.append(player)
        else:
            enemies.append(player)
    return allies, enemies


class WinConditionTracker:
    """
    Tracks houses built toward the objective.

    State machine: in_progress -> completed. completed is terminal; construction
    events that arrive after it are ignored.
    """

    def __init__(
        self,
        config: ModConfig,
        host: HostServices,
        winner_presentation: Presentation | None = None,
        loser_presentation: Presentation | None = None,
        log: MatchLog | None = None,
    ):
        self.config = config
        self.host = host
        self.winner_presentation = winner_presentation or _no_presentation
        self.loser_presentation = loser_presentation or _no_presentation
        self.log = log
        self.progress = ObjectiveProgress(
            current_count=min(config.seed_count, config.objective_requirement),
            required_count=config.objective_requirement,
        )
        # Objective widget handle, set once the host has created it
        self.objective = None

    @property
    def state(self) -> str:
        return self.progress.state

    @property
    def completed(self) -> bool:
        return self.progress.completed

    def on_construction_complete(self, event: ConstructionEvent) -> list[GameEvent]:
        """Count a finished building if it is a house built by an active player."""
        builder = event.builder
        if builder is None or builder.is_eliminated:
            logger.debug("Ignoring construction of %s: no active builder", event.blueprint.name)
            return []
        if not event.blueprint.is_of_type(self.config.tracked_building_type):
            logger.debug("Ignoring construction of %s: not a %s",
                         event.blueprint.name, self.config.tracked_building_type)
            return []
        if self.progress.completed:
            logger.debug("Ignoring construction of %s: objective already completed", event.blueprint.name)
            return []

        self.progress.current_count += 1
        progress = self.progress
        events = self._record([objective_progressed(
            builder.player_id,
            event.entity_id,
            progress.current_count,
            progress.required_count,
            progress.fraction,
        )])
        if self.objective is not None:
            self.host.update_objective(
                self.objective,
                current=progress.current_count,
                progress=progress.fraction,
            )

        if progress.current_count >= progress.required_count:
            events.extend(self.on_goal_reached(builder))
        else:
            self.host.play_sound(PROGRESS_SOUND)
        return events

    def on_goal_reached(self, winner: Player) -> list[GameEvent]:
        """
        Declare the winner's allies victorious and everyone else defeated.
        Runs at most once per match. A presentation that raises is logged and
        does not stop the remaining declarations.

        Defeats are reported by the host through the game mode's
        on_player_defeated, so they are not among the returned events.
        """
        if self.progress.completed:
            return []
        self.progress.completed = True

        allies, enemies = partition_players(
            self.host.players(), winner.player_id, self.host.relationship)
        logger.info(
            "Objective reached by player %d: victorious=%s defeated=%s",
            winner.player_id,
            [p.player_id for p in allies],
            [p.player_id for p in enemies],
        )
        events = self._record([goal_reached(
            winner.player_id,
            [p.player_id for p in allies],
            [p.player_id for p in enemies],
            self.progress.required_count,
        )])

        declare_defeated = partial(self.host.declare_defeated, reason=WIN_REASON)
        for player in allies:
            events.extend(self._declare(
                self.host.declare_victorious, player, self.winner_presentation, OUTCOME_VICTORIOUS))
        for player in enemies:
            events.extend(self._declare(
                declare_defeated, player, self.loser_presentation, OUTCOME_DEFEATED))
        return events

    def _declare(
        self,
        declare: Callable[[int, Presentation], None],
        player: Player,
        presentation: Presentation,
        outcome: str,
    ) -> list[GameEvent]:
        error = None
        try:
            declare(player.player_id, presentation)
        except Exception as e:
            logger.exception("Declaring player %d %s failed", player.player_id, outcome)
            error = e

        # A player already out of the match keeps the outcome it had.
        current = self.host.get_player(player.player_id)
        events = []
        if outcome == OUTCOME_VICTORIOUS and current is not None and current.outcome == OUTCOME_VICTORIOUS:
            events.append(player_victorious(player.player_id))
        if error is not None:
            events.append(presentation_failed(player.player_id, outcome, str(error)))
        return self._record(events)

    def _record(self, events: list[GameEvent]) -> list[GameEvent]:
        if self.log is not None:
            self.log.extend(events)
        return events
