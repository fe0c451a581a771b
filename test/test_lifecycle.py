"""
Tests for the house race game mode running on the simulated host:
match setup, timed rules, the objective widget and the end of match.
"""

import pytest

from conftest import HOUSE, TWO_TEAM_SEATS
from marioberg.engine import (
    DEFEAT_STINGER,
    EVENT_CUE_SOUND,
    FORMATION_ABILITY,
    GAMEOVER_OBJECTIVE_TIME,
    RESOURCE_GRANT_INTERVAL,
    SPAWN_UNITS_DELAY,
    SPEARMEN_PER_PLAYER,
    STARTING_RESOURCES,
    VICTORY_STINGER,
    WIN_REASON,
)
from marioberg.engine.events import (
    BUILDING_SPAWNED,
    GAME_OVER,
    GOAL_REACHED,
    MATCH_STARTED,
    OBJECTIVE_CREATED,
    OBJECTIVE_PROGRESSED,
    OPTIONS_APPLIED,
    PLAYER_DEFEATED,
    PLAYER_VICTORIOUS,
    RESOURCES_GRANTED,
    SPAWN_SKIPPED,
    TOWN_CENTER_FOUND,
    UNITS_SPAWNED,
)
from marioberg.engine.host import OBJECTIVE_COMPLETE, OBJECTIVE_FAILED, OBJECTIVE_INCOMPLETE
from marioberg.engine.lifecycle import GameModeLifecycle, HouseRaceGameMode
from marioberg.engine.simulation import SimulatedHost
from marioberg.engine.state import OUTCOME_ACTIVE, OUTCOME_DEFEATED, OUTCOME_VICTORIOUS
from marioberg.engine.utils import initialize_match, players_from_seats

RESOURCE_500 = {"economy_section": {"resource_amount": "resource_500"}}


def race(host, builders=(2, 4, 1, 2)):
    for player_id in builders:
        host.complete_construction(player_id, HOUSE[player_id])


def only_objective(host):
    assert len(host.objectives) == 1
    return next(iter(host.objectives.values()))


def test_lifecycle_is_abstract(host):
    with pytest.raises(TypeError):
        GameModeLifecycle()
    assert isinstance(HouseRaceGameMode(host), GameModeLifecycle)


def test_init_requires_setup(host, definitions):
    game_mode = HouseRaceGameMode(host, definitions)
    with pytest.raises(RuntimeError):
        game_mode.on_init()


def test_setup_reads_economy_option(definitions):
    _, game_mode = initialize_match(TWO_TEAM_SEATS, RESOURCE_500, definitions)
    assert game_mode.config.economy_option == "resource_500"
    assert game_mode.config.resource_amount == 500
    assert game_mode.log.of_type(OPTIONS_APPLIED)[0].payload == {
        "economy_option": "resource_500",
        "resource_amount": 500,
    }


def test_setup_rejects_unknown_option(definitions):
    with pytest.raises(ValueError):
        initialize_match(TWO_TEAM_SEATS, {"economy_section": {"resource_amount": "resource_9000"}}, definitions)


def test_init_prepares_every_player(match):
    host, game_mode = match
    for player in host.players():
        pid = player.player_id
        assert host.ages[pid] == 4
        assert host.resources[pid] == STARTING_RESOURCES
        assert host.population_caps[pid] == 50
    assert host.diplomacy_enabled is False
    assert host.tribute_enabled is True
    assert game_mode.local_player.player_id == 1


def test_town_centers_revealed_and_boosted(match):
    host, game_mode = match
    assert set(game_mode.town_centers) == {1, 2, 3, 4}
    assert len(host.revealed_areas) == 4
    assert all(radius == 40 and duration == 30 for _, radius, duration in host.revealed_areas)
    for town_center in game_mode.town_centers.values():
        assert host.entities[town_center.entity_id].production_multiplier == 20
    assert len(game_mode.log.of_type(TOWN_CENTER_FOUND)) == 4


def test_seeded_houses_do_not_count(match):
    host, game_mode = match
    for pid in (1, 2, 3, 4):
        houses = host.entities_of_type(pid, "house")
        assert len(houses) == 1
        town_center = game_mode.town_centers[pid]
        assert houses[0].position == town_center.position.offset(10, 20)
    assert len(game_mode.log.of_type(BUILDING_SPAWNED)) == 4
    assert game_mode.tracker.progress.current_count == 1


def test_objective_shown_to_local_player(match):
    host, game_mode = match
    objective = only_objective(host)
    assert objective.player_id == 1
    assert objective.visible is True
    assert objective.state == OBJECTIVE_INCOMPLETE
    assert (objective.current, objective.maximum) == (1, 5)
    assert objective.progress == pytest.approx(0.2)
    assert game_mode.tracker.objective is objective

    created = game_mode.log.of_type(OBJECTIVE_CREATED)[0].payload
    assert created["current"] == 1
    assert created["max"] == 5
    assert game_mode.log.of_type(MATCH_STARTED)[0].payload == {
        "player_ids": [1, 2, 3, 4],
        "local_player_id": 1,
    }


def test_setup_objective_is_idempotent(match):
    host, game_mode = match
    game_mode.setup_objective()
    assert len(host.objectives) == 1
    assert len(game_mode.log.of_type(OBJECTIVE_CREATED)) == 1


def test_spearmen_arrive_after_delay(match):
    host, game_mode = match
    host.advance(SPAWN_UNITS_DELAY - 1)
    assert host.squads == {}

    host.advance(1)
    assert len(host.squads) == 4 * SPEARMEN_PER_PLAYER
    for pid in (1, 2, 3, 4):
        group = host.squad_groups[f"sg_player_spearmen_{pid}"]
        assert len(group) == SPEARMEN_PER_PLAYER
        rally = game_mode.town_centers[pid].position.offset(20, 20)
        for squad_id in group:
            squad = host.squads[squad_id]
            assert squad.owner_id == pid
            assert squad.formation == FORMATION_ABILITY
            assert squad.position == rally
    assert len(game_mode.log.of_type(UNITS_SPAWNED)) == 4

    host.advance(100)
    assert len(host.squads) == 4 * SPEARMEN_PER_PLAYER


def test_resources_granted_every_minute(definitions):
    host, game_mode = initialize_match(TWO_TEAM_SEATS, RESOURCE_500, definitions)
    host.advance(RESOURCE_GRANT_INTERVAL - 1)
    assert host.resources[2]["food"] == 1000

    host.advance(1)
    assert host.resources[2] == {"food": 1500, "wood": 550, "gold": 500, "stone": 500}
    assert len(host.event_cues) == 1
    assert host.event_cues[0]["player_id"] == 1
    assert host.event_cues[0]["sound"] == EVENT_CUE_SOUND
    assert host.event_cues[0]["text"].startswith("500 ")

    host.advance(RESOURCE_GRANT_INTERVAL)
    assert host.resources[4]["gold"] == 1000
    assert len(host.event_cues) == 2
    grants = game_mode.log.of_type(RESOURCES_GRANTED)
    assert len(grants) == 2
    assert grants[0].payload["player_ids"] == [1, 2, 3, 4]


def test_default_grant_amount(match):
    host, _ = match
    host.advance(RESOURCE_GRANT_INTERVAL)
    assert host.resources[1]["stone"] == 200


def test_house_progress_updates_widget(match):
    host, game_mode = match
    host.complete_construction(3, HOUSE[3])
    host.complete_construction(3, "building_unit_infantry_control_mon")
    host.complete_construction(None, HOUSE[1])

    objective = only_objective(host)
    assert objective.current == 2
    assert objective.progress == pytest.approx(0.4)
    assert game_mode.tracker.progress.current_count == 2


def test_full_race_ends_match(match):
    host, game_mode = match
    host.advance(SPAWN_UNITS_DELAY)
    race(host)

    assert host.decided
    outcomes = {p.player_id: p.outcome for p in host.players()}
    assert outcomes == {
        1: OUTCOME_VICTORIOUS,
        2: OUTCOME_VICTORIOUS,
        3: OUTCOME_DEFEATED,
        4: OUTCOME_DEFEATED,
    }
    assert len(game_mode.log.of_type(GOAL_REACHED)) == 1
    assert [e.type for e in game_mode.log.entries[-7:]] == [
        OBJECTIVE_PROGRESSED,
        GOAL_REACHED,
        PLAYER_VICTORIOUS,
        PLAYER_VICTORIOUS,
        PLAYER_DEFEATED,
        PLAYER_DEFEATED,
        GAME_OVER,
    ]
    defeats = game_mode.log.of_type(PLAYER_DEFEATED)
    assert [(e.payload["player_id"], e.payload["reason"]) for e in defeats] == [
        (3, WIN_REASON),
        (4, WIN_REASON),
    ]
    assert game_mode.log.entries[-1].type == GAME_OVER
    assert game_mode.log.entries[-1].payload["outcomes"] == outcomes

    # Local player is on the winning side
    objective = only_objective(host)
    assert objective.state == OBJECTIVE_COMPLETE
    assert objective.visible is False
    assert objective.popups == 1
    assert host.stingers == [VICTORY_STINGER]
    assert host.taskbar_visible is False
    assert host.selection_clears == 1

    # Only the delayed game over message is left; the resource rule is gone
    assert host.pending_rules == 1
    assert host.game_over_messages == []
    host.advance(GAMEOVER_OBJECTIVE_TIME)
    assert len(host.game_over_messages) == 1
    message = host.game_over_messages[0]
    assert message["player_id"] == 1
    assert message["end_type"] == "VICTORY"
    assert message["time"] == SPAWN_UNITS_DELAY + GAMEOVER_OBJECTIVE_TIME
    assert host.pending_rules == 0

    wood = host.resources[1]["wood"]
    host.advance(RESOURCE_GRANT_INTERVAL * 3)
    assert host.resources[1]["wood"] == wood
    assert len(game_mode.log.of_type(RESOURCES_GRANTED)) == 0


def test_construction_handler_removed_after_game_over(match):
    host, game_mode = match
    race(host)
    count = len(game_mode.log.entries)
    host.complete_construction(3, HOUSE[3])
    assert len(game_mode.log.entries) == count


def test_local_player_on_losing_side_sees_defeat(definitions):
    seats = [dict(seat, is_local=(index == 3)) for index, seat in enumerate(TWO_TEAM_SEATS, start=1)]
    host, game_mode = initialize_match(seats, None, definitions)
    race(host, (1, 1, 2, 1))

    objective = only_objective(host)
    assert objective.player_id == 3
    assert objective.state == OBJECTIVE_FAILED
    assert host.stingers == [DEFEAT_STINGER]
    host.advance(GAMEOVER_OBJECTIVE_TIME)
    assert [m["end_type"] for m in host.game_over_messages] == ["DEFEAT"]
    assert host.game_over_messages[0]["player_id"] == 3


def test_free_for_all_has_single_winner(definitions):
    seats = [
        {"civilization": "english"},
        {"civilization": "chinese"},
        {"civilization": "rus"},
    ]
    host, _ = initialize_match(seats, None, definitions)
    for _ in range(4):
        host.complete_construction(2, "building_house_control_chi")
    outcomes = {p.player_id: p.outcome for p in host.players()}
    assert outcomes == {1: OUTCOME_DEFEATED, 2: OUTCOME_VICTORIOUS, 3: OUTCOME_DEFEATED}


def test_eliminated_player_houses_do_not_count(match):
    host, game_mode = match
    host.eliminate(4, "surrender")
    host.complete_construction(4, HOUSE[4])

    assert game_mode.tracker.progress.current_count == 1
    defeated = game_mode.log.of_type(PLAYER_DEFEATED)
    assert defeated[0].payload == {"player_id": 4, "reason": "surrender"}
    assert host.get_player(4).outcome == OUTCOME_DEFEATED
    assert host.get_player(3).outcome == OUTCOME_ACTIVE


def test_eliminated_player_stays_defeated_when_allies_win(match):
    host, game_mode = match
    host.eliminate(4)
    race(host, (3, 3, 3, 3))
    assert host.get_player(3).outcome == OUTCOME_VICTORIOUS
    assert host.get_player(4).outcome == OUTCOME_DEFEATED

    victorious = [e.payload["player_id"] for e in game_mode.log.of_type(PLAYER_VICTORIOUS)]
    assert 4 not in victorious
    assert victorious == [3]
    assert game_mode.log.of_type(GAME_OVER)[0].payload["outcomes"][4] == OUTCOME_DEFEATED
    # Defeated once, by elimination
    assert [e.payload["player_id"] for e in game_mode.log.of_type(PLAYER_DEFEATED)] == [4, 1, 2]


def test_unknown_civilization_skips_spawns(definitions):
    seats = [
        {"civilization": "english", "is_local": True},
        {"civilization": "aztec"},
    ]
    host, game_mode = initialize_match(seats, None, definitions)
    host.advance(SPAWN_UNITS_DELAY)

    skipped = game_mode.log.of_type(SPAWN_SKIPPED)
    assert [e.payload["player_id"] for e in skipped] == [2, 2]
    assert all(e.payload["civilization"] == "aztec" for e in skipped)
    assert host.entities_of_type(2, "house") == []
    assert host.find_town_center(2) is not None
    assert "sg_player_spearmen_2" not in host.squad_groups
    assert len(host.squad_groups["sg_player_spearmen_1"]) == SPEARMEN_PER_PLAYER


def test_host_schedules_game_over_once(match):
    host, game_mode = match
    race(host)
    game_mode.on_game_over()
    assert len(game_mode.log.of_type(GAME_OVER)) == 2
    race(host)
    assert len(game_mode.log.of_type(GAME_OVER)) == 2


def test_match_without_local_player_has_no_objective(definitions):
    players = players_from_seats(TWO_TEAM_SEATS)
    for player in players:
        player.is_local = False
    host = SimulatedHost(players, definitions=definitions)
    game_mode = HouseRaceGameMode(host, definitions)
    host.start(game_mode, None)

    assert host.objectives == {}
    host.advance(RESOURCE_GRANT_INTERVAL)
    assert host.event_cues == []
    race(host)
    assert host.decided
    host.advance(GAMEOVER_OBJECTIVE_TIME)
    assert host.game_over_messages == []
