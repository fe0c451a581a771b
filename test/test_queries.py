"""
Tests for read-only match queries and match initialization helpers.
"""

import pytest

from conftest import HOUSE, TWO_TEAM_SEATS
from marioberg.engine.lifecycle import HouseRaceGameMode
from marioberg.engine.queries import (
    get_active_players,
    get_allies_and_enemies,
    get_match_summary,
    get_objective_view,
    get_player_outcomes,
)
from marioberg.engine.utils import players_from_seats, print_match_state


def test_objective_view_before_setup(host):
    view = get_objective_view(HouseRaceGameMode(host))
    assert view["current"] == 0
    assert view["state"] == "in_progress"


def test_objective_view(match):
    host, game_mode = match
    host.complete_construction(1, HOUSE[1])
    view = get_objective_view(game_mode)
    assert view["current"] == 2
    assert view["max"] == 5
    assert view["fraction"] == pytest.approx(0.4)
    assert view["state"] == "in_progress"
    assert view["title"] == game_mode.config.objective_title


def test_allies_and_enemies(match):
    host, _ = match
    assert get_allies_and_enemies(host, 3) == {"allies": [3, 4], "enemies": [1, 2]}


def test_summary_through_match(match):
    host, game_mode = match
    summary = get_match_summary(game_mode, host)
    assert summary["local_player_id"] == 1
    assert summary["game_over"] is False
    assert summary["winners"] == []
    assert summary["config"]["economy_option"] == "resource_200"
    assert len(get_active_players(host)) == 4

    for player_id in (4, 4, 4, 4):
        host.complete_construction(player_id, HOUSE[player_id])

    summary = get_match_summary(game_mode, host)
    assert summary["game_over"] is True
    assert summary["winners"] == [3, 4]
    assert summary["objective"]["state"] == "completed"
    assert summary["event_count"] == len(game_mode.log.entries)
    assert get_player_outcomes(host) == {1: "defeated", 2: "defeated", 3: "victorious", 4: "victorious"}
    assert get_active_players(host) == []


def test_players_from_seats_defaults():
    players = players_from_seats([{"civilization": "english"}, {"civilization": "rus", "name": "Bowser"}])
    assert [p.player_id for p in players] == [1, 2]
    assert [p.team for p in players] == [1, 2]
    assert players[0].is_local and not players[1].is_local
    assert players[0].name == "Player 1"
    assert players[1].name == "Bowser"


def test_players_from_seats_keeps_local_choice():
    players = players_from_seats(TWO_TEAM_SEATS)
    assert [p.is_local for p in players] == [True, False, False, False]
    assert [p.team for p in players] == [1, 1, 2, 2]


@pytest.mark.parametrize("seats", [
    ["english"],
    [{"name": "No civ"}],
    [{"civilization": "english", "team": "red"}],
])
def test_players_from_seats_rejects_bad_seats(seats):
    with pytest.raises(ValueError):
        players_from_seats(seats)


def test_print_match_state(match, capsys):
    host, game_mode = match
    print_match_state(game_mode, host)
    out = capsys.readouterr().out
    assert "Houses: 1/5" in out
    assert "Mario (local)" in out


@pytest.mark.parametrize("teams,expected", [
    ([2, None, None], [2, 3, 4]),
    ([None, 1, None], [2, 1, 3]),
    ([5, None, 1], [5, 6, 1]),
    ([None, "3", None, 3], [4, 3, 5, 3]),
])
def test_seats_without_team_get_unused_team(teams, expected):
    seats = [{"civilization": "english"} if team is None else {"civilization": "english", "team": team}
             for team in teams]
    players = players_from_seats(seats)
    assert [p.team for p in players] == expected


def test_seat_without_team_is_nobodys_ally(definitions):
    from marioberg.engine.utils import initialize_match

    host, _ = initialize_match(
        [{"civilization": "english", "team": 2}, {"civilization": "rus"}, {"civilization": "mongol"}],
        None,
        definitions,
    )
    assert get_allies_and_enemies(host, 1) == {"allies": [1], "enemies": [2, 3]}
    assert get_allies_and_enemies(host, 2) == {"allies": [2], "enemies": [1, 3]}
