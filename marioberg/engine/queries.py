"""
Query functions for UI integration.
These functions read a running match without mutating it.
"""

from typing import Any

from marioberg.engine.host import HostServices
from marioberg.engine.lifecycle import HouseRaceGameMode
from marioberg.engine.state import OUTCOME_ACTIVE, OUTCOME_VICTORIOUS, STATE_IN_PROGRESS, Player
from marioberg.engine.tracker import partition_players


def get_objective_view(game_mode: HouseRaceGameMode) -> dict[str, Any]:
    """Objective progress as the UI shows it: {title, icon, current, max, fraction, state}."""
    if game_mode.config is None or game_mode.tracker is None:
        return {
            "title": None,
            "icon": None,
            "current": 0,
            "max": 0,
            "fraction": 0.0,
            "state": STATE_IN_PROGRESS,
        }
    progress = game_mode.tracker.progress
    return {
        "title": game_mode.config.objective_title,
        "icon": game_mode.config.objective_icon,
        "current": progress.current_count,
        "max": progress.required_count,
        "fraction": progress.fraction,
        "state": progress.state,
    }


def get_player_outcomes(host: HostServices) -> dict[int, str]:
    """player_id -> "active" | "victorious" | "defeated"."""
    return {p.player_id: p.outcome for p in host.players()}


def get_allies_and_enemies(host: HostServices, player_id: int) -> dict[str, list[int]]:
    """Classify every player against player_id: {"allies": [...], "enemies": [...]}."""
    allies, enemies = partition_players(host.players(), player_id, host.relationship)
    return {
        "allies": [p.player_id for p in allies],
        "enemies": [p.player_id for p in enemies],
    }


def get_active_players(host: HostServices) -> list[Player]:
    return [p for p in host.players() if p.outcome == OUTCOME_ACTIVE and not p.is_eliminated]


def get_match_summary(game_mode: HouseRaceGameMode, host: HostServices) -> dict[str, Any]:
    """
    Get a summary of the match for UI display.
    """
    outcomes = get_player_outcomes(host)
    winners = [pid for pid, outcome in outcomes.items() if outcome == OUTCOME_VICTORIOUS]
    local = host.local_player()
    return {
        "config": game_mode.config.to_dict() if game_mode.config else None,
        "objective": get_objective_view(game_mode),
        "players": [p.to_dict() for p in host.players()],
        "local_player_id": local.player_id if local else None,
        "outcomes": outcomes,
        "winners": winners,
        "game_over": bool(outcomes) and all(o != OUTCOME_ACTIVE for o in outcomes.values()),
        "event_count": len(game_mode.log.entries),
    }
