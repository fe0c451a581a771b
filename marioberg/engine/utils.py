"""
Utility functions for the game mode.
"""

from typing import Any

from marioberg.engine.definitions import StaticDefinitions, load_static_definitions
from marioberg.engine.lifecycle import HouseRaceGameMode
from marioberg.engine.simulation import SimulatedHost
from marioberg.engine.state import Player


def players_from_seats(seats: list[dict[str, Any]]) -> list[Player]:
    """
    Convert lobby seats to players. Player ids are assigned 1..n in seat order.

    Args:
        seats: [{"name": str, "civilization": str, "team": int, "is_local": bool}, ...]
            A seat without a team plays on its own, under a team id no other seat
            uses; the first seat is local when no seat says otherwise.
    """
    teams: list[int | None] = []
    for index, seat in enumerate(seats, start=1):
        if not isinstance(seat, dict):
            raise ValueError(f"Seat {index} must be an object")
        if not seat.get("civilization"):
            raise ValueError(f"Seat {index} has no civilization")
        team = seat.get("team")
        if team is not None:
            try:
                team = int(team)
            except (TypeError, ValueError):
                raise ValueError(f"Seat {index} has an invalid team: {team!r}")
        teams.append(team)

    next_team = max((t for t in teams if t is not None), default=0) + 1
    players = []
    for index, (seat, team) in enumerate(zip(seats, teams), start=1):
        if team is None:
            team = next_team
            next_team += 1
        players.append(Player(
            player_id=index,
            name=str(seat.get("name") or f"Player {index}"),
            civilization=str(seat["civilization"]),
            team=team,
            is_local=bool(seat.get("is_local", False)),
        ))
    if players and not any(p.is_local for p in players):
        players[0].is_local = True
    return players


def initialize_match(
    seats: list[dict[str, Any]],
    options: dict[str, Any] | None = None,
    definitions: StaticDefinitions | None = None,
) -> tuple[SimulatedHost, HouseRaceGameMode]:
    """
    Create a simulated host with the given seats and run the game mode up to match start.

    Args:
        seats: Lobby seats (see players_from_seats)
        options: Host-selected lobby options, e.g. {"economy_section": {"resource_amount": "resource_500"}}
        definitions: Static definitions; loaded from the packaged data when omitted
    """
    definitions = definitions if definitions is not None else load_static_definitions()
    host = SimulatedHost(players_from_seats(seats), definitions=definitions)
    game_mode = HouseRaceGameMode(host, definitions)
    host.start(game_mode, options)
    return host, game_mode


def print_match_state(game_mode: HouseRaceGameMode, host: SimulatedHost) -> None:
    """Pretty-print the current match state."""
    progress = game_mode.tracker.progress if game_mode.tracker else None
    print(f"\n{'='*60}")
    if progress:
        print(f"t={host.clock:.0f}s | Houses: {progress.current_count}/{progress.required_count} "
              f"| State: {progress.state}")
    else:
        print(f"t={host.clock:.0f}s | not set up")
    print(f"{'='*60}")

    for player in host.players():
        marker = " (local)" if player.is_local else ""
        status = "eliminated" if player.is_eliminated else player.outcome
        houses = len(host.entities_of_type(player.player_id, "house"))
        print(f"\n{player.name}{marker} - {player.civilization}, team {player.team}: {status}")
        print(f"  - houses: {houses}")
        resource_str = ", ".join(f"{k}: {v}" for k, v in host.resources[player.player_id].items())
        print(f"  - resources: {resource_str or 'none'}")
    print()
