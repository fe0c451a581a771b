"""
Main entry point for the Marioberg house race game mode.
Plays a simulated two-versus-two match to the end.
"""

import logging

from marioberg.config import LOG_LEVEL
from marioberg.engine import GAMEOVER_OBJECTIVE_TIME, RESOURCE_GRANT_INTERVAL, SPAWN_UNITS_DELAY
from marioberg.engine.definitions import load_static_definitions
from marioberg.engine.queries import get_allies_and_enemies, get_objective_view
from marioberg.engine.utils import initialize_match, print_match_state


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    print("Marioberg - First to Five Houses")
    print("=" * 60)

    definitions = load_static_definitions()
    seats = [
        {"name": "Mario", "civilization": "english", "team": 1, "is_local": True},
        {"name": "Luigi", "civilization": "french", "team": 1},
        {"name": "Wario", "civilization": "mongol", "team": 2},
        {"name": "Waluigi", "civilization": "ottoman", "team": 2},
    ]
    host, game_mode = initialize_match(
        seats, {"economy_section": {"resource_amount": "resource_500"}}, definitions)

    print("\n[INITIAL STATE]")
    print_match_state(game_mode, host)

    # ===== SCENARIO 1: Starting army and income =====
    print("\n[SCENARIO 1: Spearmen arrive, resources tick]")
    host.advance(SPAWN_UNITS_DELAY)
    print(f"Squads on the map after {SPAWN_UNITS_DELAY}s: {len(host.squads)}")
    host.advance(RESOURCE_GRANT_INTERVAL - SPAWN_UNITS_DELAY)
    print(f"Mario's resources after one minute: {host.resources[1]}")

    # ===== SCENARIO 2: Buildings that do not count =====
    print("\n[SCENARIO 2: Ignored constructions]")
    host.complete_construction(3, "building_unit_infantry_control_mon")
    print(f"Wario builds barracks -> objective {get_objective_view(game_mode)['current']}/5")
    host.complete_construction(None, "building_house_control_eng")
    print(f"Scripted house with no builder -> objective {get_objective_view(game_mode)['current']}/5")

    # ===== SCENARIO 3: The race =====
    print("\n[SCENARIO 3: House race]")
    builds = [
        (2, "building_house_control_fre"),
        (4, "building_house_ott"),
        (1, "building_house_control_eng"),
        (2, "building_house_control_fre"),
    ]
    for player_id, blueprint in builds:
        host.complete_construction(player_id, blueprint)
        view = get_objective_view(game_mode)
        print(f"Player {player_id} finishes {blueprint} -> {view['current']}/{view['max']} ({view['state']})")

    relations = get_allies_and_enemies(host, 2)
    print(f"\nWinner's allies: {relations['allies']}, enemies: {relations['enemies']}")

    host.advance(GAMEOVER_OBJECTIVE_TIME)
    for message in host.game_over_messages:
        print(f"Player {message['player_id']} sees: {message['end_type']}")

    print("\n[FINAL STATE]")
    print_match_state(game_mode, host)
    print("Events:")
    for event in game_mode.log.entries:
        print(f"  - {event.type}: {event.payload}")


if __name__ == "__main__":
    main()
