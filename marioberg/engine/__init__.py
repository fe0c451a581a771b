"""
House race win condition engine
Host-driven game mode: the host owns players, entities and time; the engine reacts.
"""

MODULE_NAME = "Mod"

# Objective: the player who completes the house that reaches this count wins with its allies.
OBJECTIVE_REQUIREMENT = 5
# Every player starts with one pre-placed house.
OBJECTIVE_SEED_COUNT = 1
TRACKED_BUILDING_TYPE = "house"
# Reason attached to victory and defeat declarations.
WIN_REASON = "conquest"
OBJECTIVE_TITLE = "$6384a68ad823457e8be819a57b0c9a3f:11"
OBJECTIVE_ICON = "icons\\races\\common\\victory_conditions\\victory_condition_conquest"
RESOURCES_GRANTED_TEXT = "$6384a68ad823457e8be819a57b0c9a3f:12"

# Rule timings (seconds)
SPAWN_UNITS_DELAY = 5
RESOURCE_GRANT_INTERVAL = 60
GAMEOVER_OBJECTIVE_TIME = 4

# Starting conditions
STARTING_AGE = 4  # Dark = 1, Feudal = 2, Castle = 3, Imperial = 4
STARTING_RESOURCES = {"food": 1000, "wood": 50, "gold": 0, "stone": 0}
GRANTED_RESOURCES = ("food", "wood", "gold", "stone")
STARTING_POPULATION_CAP = 50

# Town center
TOWN_CENTER_REVEAL_RADIUS = 40
TOWN_CENTER_REVEAL_DURATION = 30
TOWN_CENTER_PRODUCTION_MULTIPLIER = 20

# Spawning offsets are (dx, dz) from the owner's town center.
SPEARMEN_PER_PLAYER = 16
SPEARMEN_SPAWN_OFFSET = (20, 10)
SPEARMEN_RALLY_OFFSET = (20, 20)
SEED_HOUSE_OFFSET = (10, 20)
FORMATION_ABILITY = "core_formation_line"

# Audio
PROGRESS_SOUND = "mus_stinger_campaign_triumph_short"
VICTORY_STINGER = "MUS_STING_PRIMARY_OBJ_COMPLETE"
DEFEAT_STINGER = "MUS_STING_PRIMARY_OBJ_FAIL"
VICTORY_MESSAGE_SOUND = "mus_stinger_landmark_objective_complete_success"
DEFEAT_MESSAGE_SOUND = "mus_stinger_landmark_objective_complete_fail"
EVENT_CUE_SOUND = "sfx_ui_event_queue_low_priority_play"
