"""
Game events for UI hooks and logging.
Events describe what the game mode did in response to host callbacks.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

# Lifecycle events
OPTIONS_APPLIED = "options_applied"
MATCH_STARTED = "match_started"
GAME_OVER = "game_over"

# Setup events
TOWN_CENTER_FOUND = "town_center_found"
BUILDING_SPAWNED = "building_spawned"
UNITS_SPAWNED = "units_spawned"
SPAWN_SKIPPED = "spawn_skipped"

# Resource events
RESOURCES_GRANTED = "resources_granted"

# Objective events
OBJECTIVE_CREATED = "objective_created"
OBJECTIVE_PROGRESSED = "objective_progressed"

# Victory events
GOAL_REACHED = "goal_reached"
PLAYER_VICTORIOUS = "player_victorious"
PLAYER_DEFEATED = "player_defeated"
PRESENTATION_FAILED = "presentation_failed"


# ===== Event Factory Functions =====

def options_applied(economy_option: str, resource_amount: int) -> GameEvent:
    return GameEvent(OPTIONS_APPLIED, {
        "economy_option": economy_option,
        "resource_amount": resource_amount,
    })


def match_started(player_ids: list[int], local_player_id: int | None) -> GameEvent:
    return GameEvent(MATCH_STARTED, {
        "player_ids": player_ids,
        "local_player_id": local_player_id,
    })


def game_over(outcomes: dict[int, str]) -> GameEvent:
    return GameEvent(GAME_OVER, {"outcomes": outcomes})


def town_center_found(player_id: int, entity_id: int, position: dict[str, float]) -> GameEvent:
    return GameEvent(TOWN_CENTER_FOUND, {
        "player_id": player_id,
        "entity_id": entity_id,
        "position": position,
    })


def building_spawned(player_id: int, blueprint: str, entity_id: int) -> GameEvent:
    return GameEvent(BUILDING_SPAWNED, {
        "player_id": player_id,
        "blueprint": blueprint,
        "entity_id": entity_id,
    })


def units_spawned(player_id: int, blueprint: str, count: int, squad_group: str) -> GameEvent:
    return GameEvent(UNITS_SPAWNED, {
        "player_id": player_id,
        "blueprint": blueprint,
        "count": count,
        "squad_group": squad_group,
    })


def spawn_skipped(player_id: int, civilization: str, reason: str) -> GameEvent:
    """Emitted when a player's civilization has no blueprint mapping."""
    return GameEvent(SPAWN_SKIPPED, {
        "player_id": player_id,
        "civilization": civilization,
        "reason": reason,
    })


def resources_granted(player_ids: list[int], amount: int, resources: list[str]) -> GameEvent:
    return GameEvent(RESOURCES_GRANTED, {
        "player_ids": player_ids,
        "amount": amount,  # per resource, per player
        "resources": resources,
    })


def objective_created(player_id: int, title: str, current: int, maximum: int) -> GameEvent:
    return GameEvent(OBJECTIVE_CREATED, {
        "player_id": player_id,
        "title": title,
        "current": current,
        "max": maximum,
    })


def objective_progressed(
    builder_id: int,
    entity_id: int | None,
    current_count: int,
    required_count: int,
    fraction: float,
) -> GameEvent:
    """Emitted when a counted house moves the objective forward."""
    return GameEvent(OBJECTIVE_PROGRESSED, {
        "builder_id": builder_id,
        "entity_id": entity_id,
        "current_count": current_count,
        "required_count": required_count,
        "fraction": fraction,
    })


def goal_reached(
    winner_id: int,
    allies: list[int],
    enemies: list[int],
    required_count: int,
) -> GameEvent:
    """
    Emitted once when the objective completes.

    Args:
        winner_id: The player who finished the last house
        allies: Player ids declared victorious (includes the winner)
        enemies: Player ids declared defeated
        required_count: The threshold that was reached
    """
    return GameEvent(GOAL_REACHED, {
        "winner_id": winner_id,
        "allies": allies,
        "enemies": enemies,
        "required_count": required_count,
    })


def player_victorious(player_id: int) -> GameEvent:
    return GameEvent(PLAYER_VICTORIOUS, {"player_id": player_id})


def player_defeated(player_id: int, reason: str) -> GameEvent:
    return GameEvent(PLAYER_DEFEATED, {"player_id": player_id, "reason": reason})


def presentation_failed(player_id: int, outcome: str, error: str) -> GameEvent:
    return GameEvent(PRESENTATION_FAILED, {
        "player_id": player_id,
        "outcome": outcome,
        "error": error,
    })
