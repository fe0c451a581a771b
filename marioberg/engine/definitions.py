"""
Static definitions for civilizations, blueprints and lobby options.
All data lives under marioberg/data/: civilizations.json, blueprints.json, options.json.
ModConfig is the immutable configuration built once per match from the host-selected options.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from marioberg.engine import (
    MODULE_NAME,
    OBJECTIVE_ICON,
    OBJECTIVE_REQUIREMENT,
    OBJECTIVE_SEED_COUNT,
    OBJECTIVE_TITLE,
    TRACKED_BUILDING_TYPE,
)
from marioberg.engine.state import EntityBlueprint, SquadBlueprint

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"

ECONOMY_SECTION = "economy_section"
RESOURCE_AMOUNT_OPTION = "resource_amount"


def _default_economy_option() -> str:
    """Single place for default: marioberg.config.DEFAULT_ECONOMY_OPTION."""
    from marioberg.config import DEFAULT_ECONOMY_OPTION
    return DEFAULT_ECONOMY_OPTION


@dataclass(frozen=True)
class CivilizationDefinition:
    """Blueprint names a civilization uses for the game mode's spawns."""
    id: str
    display_name: str
    spearman_blueprint: str
    house_blueprint: str
    town_center_blueprint: str


@dataclass(frozen=True)
class EconomyPreset:
    """One choice of the lobby's resource amount option."""
    id: str
    display_name: str
    resource_amount: int


@dataclass(frozen=True)
class StaticDefinitions:
    civilizations: dict[str, CivilizationDefinition]
    entity_blueprints: dict[str, EntityBlueprint]
    squad_blueprints: dict[str, SquadBlueprint]
    abilities: frozenset[str]
    economy_presets: dict[str, EconomyPreset]


@dataclass(frozen=True)
class ModConfig:
    """Per-match configuration. Built at setup and passed to every collaborator that needs it."""
    economy_option: str
    resource_amount: int
    module: str = MODULE_NAME
    objective_title: str = OBJECTIVE_TITLE
    objective_icon: str = OBJECTIVE_ICON
    objective_requirement: int = OBJECTIVE_REQUIREMENT
    seed_count: int = OBJECTIVE_SEED_COUNT
    tracked_building_type: str = TRACKED_BUILDING_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "economy_option": self.economy_option,
            "resource_amount": self.resource_amount,
            "objective_title": self.objective_title,
            "objective_icon": self.objective_icon,
            "objective_requirement": self.objective_requirement,
            "seed_count": self.seed_count,
            "tracked_building_type": self.tracked_building_type,
        }


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Static data not found: {path}")
    with open(path, "r") as f:
        return json.load(f)


def load_static_definitions(data_dir: Path | str | None = None) -> StaticDefinitions:
    """
    Load civilizations, blueprints and lobby option presets.

    Args:
        data_dir: Directory holding the JSON files. Defaults to the packaged data.
    """
    data_dir = Path(data_dir) if data_dir is not None else DATA_DIR

    civilizations = {}
    for civ_id, data in _read_json(data_dir / "civilizations.json").items():
        civilizations[civ_id] = CivilizationDefinition(
            id=data["id"],
            display_name=data.get("display_name", civ_id),
            spearman_blueprint=data["spearman_blueprint"],
            house_blueprint=data["house_blueprint"],
            town_center_blueprint=data["town_center_blueprint"],
        )

    blueprints_data = _read_json(data_dir / "blueprints.json")
    entity_blueprints = {
        name: EntityBlueprint(name=name, types=frozenset(types))
        for name, types in (blueprints_data.get("entities") or {}).items()
    }
    squad_blueprints = {
        name: SquadBlueprint(name=name, types=frozenset(types))
        for name, types in (blueprints_data.get("squads") or {}).items()
    }
    abilities = frozenset(blueprints_data.get("abilities") or [])

    options_data = _read_json(data_dir / "options.json")
    presets_data = (options_data.get(ECONOMY_SECTION) or {}).get(RESOURCE_AMOUNT_OPTION) or {}
    economy_presets = {}
    for preset_id, data in presets_data.items():
        economy_presets[preset_id] = EconomyPreset(
            id=data.get("id", preset_id),
            display_name=data.get("display_name", preset_id),
            resource_amount=int(data["resource_amount"]),
        )

    return StaticDefinitions(
        civilizations=civilizations,
        entity_blueprints=entity_blueprints,
        squad_blueprints=squad_blueprints,
        abilities=abilities,
        economy_presets=economy_presets,
    )


def build_mod_config(
    options: dict[str, Any] | None,
    economy_presets: dict[str, EconomyPreset],
) -> ModConfig:
    """
    Build the match configuration from host-selected lobby options.

    options shape: {"economy_section": {"resource_amount": "resource_500"}}
    A missing section or value falls back to the default preset.
    Raises ValueError for a preset id that is not offered.
    """
    selected = None
    section = (options or {}).get(ECONOMY_SECTION)
    if isinstance(section, dict):
        selected = section.get(RESOURCE_AMOUNT_OPTION)
    if not selected:
        selected = _default_economy_option()

    preset = economy_presets.get(str(selected))
    if preset is None:
        raise ValueError(
            f"Unknown {RESOURCE_AMOUNT_OPTION} option '{selected}'. "
            f"Available: {', '.join(sorted(economy_presets))}"
        )
    logger.info("OPTION SELECTED: %d Resources per minute", preset.resource_amount)
    return ModConfig(economy_option=preset.id, resource_amount=preset.resource_amount)


def house_blueprint_for(
    civilization: str,
    definitions: StaticDefinitions,
) -> EntityBlueprint | None:
    """Resolve the house blueprint a civilization builds, or None if the civilization is unknown."""
    civ = definitions.civilizations.get(civilization)
    if civ is None:
        return None
    return definitions.entity_blueprints.get(civ.house_blueprint)


def spearman_blueprint_for(
    civilization: str,
    definitions: StaticDefinitions,
) -> SquadBlueprint | None:
    """Resolve the age 4 spearman squad blueprint, or None if the civilization is unknown."""
    civ = definitions.civilizations.get(civilization)
    if civ is None:
        return None
    return definitions.squad_blueprints.get(civ.spearman_blueprint)
