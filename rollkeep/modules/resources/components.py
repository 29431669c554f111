"""
Component definitions for the resources module.
"""

from typing import Dict, Any

from ..base import ComponentTypeDefinition

COUNTER = {"type": "integer", "minimum": 0}


class VoidPointsComponent(ComponentTypeDefinition):
    """Universal void point pool, spent for +1k1 on a roll."""

    type = "VoidPoints"
    section = "void_points"
    description = "Void points available to spend on rolls"
    schema_version = "1.0.0"
    module = "resources"

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "current": COUNTER,
                "max": COUNTER
            },
            "required": ["current"]
        }


class SpellSlotsComponent(ComponentTypeDefinition):
    """Remaining spell slots per ring, plus the void slot."""

    type = "SpellSlots"
    section = "spell_slots"
    description = "Spell slots remaining for each ring"
    schema_version = "1.0.0"
    module = "resources"

    def get_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "water": COUNTER,
                "air": COUNTER,
                "fire": COUNTER,
                "earth": COUNTER,
                "void": COUNTER
            },
            "additionalProperties": False
        }
