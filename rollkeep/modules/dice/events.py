"""
Event definitions for the dice module.
"""

from ..base import EventTypeDefinition


def roll_requested_event() -> EventTypeDefinition:
    """
    Event published when a character wants to make a roll.

    The dice module resolves it and answers with roll.completed or roll.failed.
    """
    return EventTypeDefinition(
        type="roll.requested",
        description="Request to resolve a roll for a character",
        module="dice",
        data_schema={
            "type": "object",
            "properties": {
                "kind": {
                    "type": "string",
                    "enum": ["trait", "skill", "ring", "pool"]
                },
                "trait": {"type": "string"},
                "skill": {"type": "string"},
                "ring": {"type": "string"},
                "roll_dice": {"type": "integer"},
                "keep_dice": {"type": "integer"},
                "tn": {"type": "integer", "minimum": 0},
                "raises": {"type": "integer", "minimum": 0},
                "spend_void": {"type": "boolean"},
                "roll_type": {"type": "string"},
                "target_id": {"type": "string"}
            },
            "required": ["kind"]
        }
    )


def roll_completed_event() -> EventTypeDefinition:
    """Event published with the full result of a resolved roll."""
    return EventTypeDefinition(
        type="roll.completed",
        description="Result of a resolved roll",
        module="dice",
        data_schema={
            "type": "object",
            "properties": {
                "label": {"type": "string"},
                "expression": {"type": "string"},
                "total": {"type": "integer"},
                "breakdown": {"type": "string"},
                "effective_tn": {"type": ["integer", "null"]},
                "outcome": {"type": "object"},
                "outcome_label": {"type": ["string", "null"]}
            },
            "required": ["expression", "total", "outcome"]
        }
    )


def roll_failed_event() -> EventTypeDefinition:
    """Event published when a roll request could not be resolved."""
    return EventTypeDefinition(
        type="roll.failed",
        description="A roll request was refused or could not be rolled",
        module="dice",
        data_schema={
            "type": "object",
            "properties": {
                "error": {"type": "string"},
                "error_code": {"type": "string"}
            },
            "required": ["error", "error_code"]
        }
    )
