"""
Extension points for rollkeep modules.

A module contributes record sections (each guarded by a JSON Schema), the
event types it publishes, and a hook that runs once the engine is ready.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, List

import jsonschema
from jsonschema.validators import validator_for


class ComponentTypeDefinition(ABC):
    """
    Guards one top-level section of a character record.

    Subclasses set ``type``, ``section``, ``description`` and ``module`` as
    class attributes and return the section's schema from get_schema().
    The engine only checks sections a module registered; anything else in a
    record is stored untouched.
    """

    type: str
    section: str
    description: str = ''
    schema_version: str = "1.0.0"
    module: str

    @abstractmethod
    def get_schema(self) -> Dict[str, Any]:
        """JSON Schema for ``data[section]``."""

    @cached_property
    def validator(self) -> Any:
        """Validator for get_schema(), built once per definition."""
        schema = self.get_schema()
        cls = validator_for(schema)
        cls.check_schema(schema)
        return cls(schema)

    def validate(self, section_data: Any) -> bool:
        """
        Raises:
            jsonschema.ValidationError: If the section does not match
        """
        self.validator.validate(section_data)
        return True


@dataclass(frozen=True)
class EventTypeDefinition:
    """
    An event type a module publishes.

    ``data_schema`` documents the payload; listeners and tests may hold a
    published event to it with validate_data().
    """
    type: str
    description: str
    module: str
    data_schema: Dict[str, Any] = field(default_factory=dict)

    def validate_data(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: If the payload does not match
        """
        if self.data_schema:
            jsonschema.validate(data, self.data_schema)


class Module(ABC):
    """
    A pluggable slice of rules.

    RecordEngine.load_module() collects the module's component and event
    types, then calls initialize() so it can build services and subscribe
    to events.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Key used by engine.get_module()."""

    @property
    @abstractmethod
    def version(self) -> str:
        pass

    def initialize(self, engine: 'RecordEngine') -> None:
        pass

    def register_component_types(self) -> List[ComponentTypeDefinition]:
        return []

    def register_event_types(self) -> List[EventTypeDefinition]:
        return []
