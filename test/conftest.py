"""
Shared fixtures: a four-player, two-team match on the simulated host.
"""

import pytest

from marioberg.engine.definitions import ModConfig, load_static_definitions
from marioberg.engine.simulation import SimulatedHost
from marioberg.engine.utils import initialize_match, players_from_seats

TWO_TEAM_SEATS = [
    {"name": "Mario", "civilization": "english", "team": 1, "is_local": True},
    {"name": "Luigi", "civilization": "french", "team": 1},
    {"name": "Wario", "civilization": "mongol", "team": 2},
    {"name": "Waluigi", "civilization": "ottoman", "team": 2},
]

HOUSE = {
    1: "building_house_control_eng",
    2: "building_house_control_fre",
    3: "building_house_mon",
    4: "building_house_ott",
}


@pytest.fixture(scope="session")
def definitions():
    return load_static_definitions()


@pytest.fixture
def config():
    return ModConfig(economy_option="resource_200", resource_amount=200)


@pytest.fixture
def host(definitions):
    """A host with players but no game mode attached."""
    return SimulatedHost(players_from_seats(TWO_TEAM_SEATS), definitions=definitions)


@pytest.fixture
def match(definitions):
    """(host, game_mode) after the game mode has started."""
    return initialize_match(TWO_TEAM_SEATS, None, definitions)
