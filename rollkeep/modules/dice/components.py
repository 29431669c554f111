"""
Component definitions for the dice module.
"""

from typing import Dict, Any

from ..base import ComponentTypeDefinition

BONUS_ENTRY = {
    "type": "object",
    "properties": {
        "roll": {"type": "integer"},
        "keep": {"type": "integer"},
        "total": {"type": "integer"}
    }
}


class RollBonusesComponent(ComponentTypeDefinition):
    """
    Active-effect bonuses by skill, trait and ring.

    Example:
        {"skill": {"kenjutsu": {"roll": 1, "keep": 0, "total": 2}}}
    """

    type = "RollBonuses"
    section = "bonuses"
    description = "Roll/keep/flat bonuses applied to skill, trait and ring rolls"
    schema_version = "1.0.0"
    module = "dice"

    def get_schema(self) -> Dict[str, Any]:
        group = {"type": "object", "additionalProperties": BONUS_ENTRY}
        return {
            "type": "object",
            "properties": {
                "skill": group,
                "trait": group,
                "ring": group
            },
            "additionalProperties": False
        }


class InitiativeComponent(ComponentTypeDefinition):
    """Initiative pool; eff_roll/eff_keep override it for NPCs when positive."""

    type = "Initiative"
    section = "initiative"
    description = "Initiative roll and keep dice"
    schema_version = "1.0.0"
    module = "dice"

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "roll": {"type": "integer", "minimum": 0},
                "keep": {"type": "integer", "minimum": 0},
                "total_mod": {"type": "integer"},
                "eff_roll": {"type": "integer", "minimum": 0},
                "eff_keep": {"type": "integer", "minimum": 0}
            }
        }


class DefenseComponent(ComponentTypeDefinition):
    """Armor TN (the TN to hit this character) and current wound penalty."""

    type = "Defense"
    section = "defense"
    description = "Armor TN and wound penalty"
    schema_version = "1.0.0"
    module = "dice"

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "armor_tn": {"type": "integer", "minimum": 0},
                "wound_penalty": {"type": "integer", "minimum": 0}
            }
        }
