"""
Resources module - consumable points stored on character records.

Provides:
- Void points (one shared counter, +1k1 per point)
- Spell slots per ring and the void slot (gate casting, grant nothing)
- A 'resource.spent' audit event for every committed spend

Usage:
    resources = engine.get_module('resources')
    result = resources.void_points.spend('char_123')
    if result.success:
        grant = result.data.grant   # Grant(roll=1, keep=1)
"""

from typing import List, Optional

from ..base import Module, ComponentTypeDefinition, EventTypeDefinition
from .components import VoidPointsComponent, SpellSlotsComponent
from .ledger import VoidPointLedger, SpellSlotLedger


def resource_spent_event() -> EventTypeDefinition:
    """Event published after a point is committed."""
    return EventTypeDefinition(
        type="resource.spent",
        description="A consumable point was spent from a character record",
        module="resources",
        data_schema={
            "type": "object",
            "properties": {
                "resource": {"type": "string"},
                "path": {"type": "string"},
                "before": {"type": "integer"},
                "after": {"type": "integer"},
                "grant": {
                    "type": "object",
                    "properties": {
                        "roll": {"type": "integer"},
                        "keep": {"type": "integer"}
                    }
                }
            },
            "required": ["resource", "path", "before", "after"]
        }
    )


class ResourcesModule(Module):
    """Void points and spell slots."""

    def __init__(self):
        self.engine = None
        self.void_points: Optional[VoidPointLedger] = None
        self.spell_slots: Optional[SpellSlotLedger] = None

    @property
    def name(self) -> str:
        return "resources"

    @property
    def version(self) -> str:
        return "1.0.0"

    def register_component_types(self) -> List[ComponentTypeDefinition]:
        return [
            VoidPointsComponent(),
            SpellSlotsComponent()
        ]

    def register_event_types(self) -> List[EventTypeDefinition]:
        return [resource_spent_event()]

    def initialize(self, engine) -> None:
        self.engine = engine
        self.void_points = VoidPointLedger(engine)
        self.spell_slots = SpellSlotLedger(engine)
