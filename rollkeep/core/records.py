"""
Record engine for rollkeep.

The RecordEngine is the main API for character records. It coordinates
storage, the event bus and section validation, and hands modules the hooks
they need (event subscriptions, versioned writes).
"""

import copy
import logging
from typing import List, Optional, Dict, Any

import jsonschema

from .storage import RecordStorage
from .event_bus import EventBus
from .models import Character, Event
from .result import Result, ErrorCode

logger = logging.getLogger(__name__)


CORE_EVENT_TYPES = [
    ('character.created', 'Character record was created'),
    ('character.updated', 'Character record was replaced'),
]


class RecordEngine:
    """
    Main API for character record management.

    Attributes:
        storage: RecordStorage instance
        event_bus: EventBus instance
        component_validators: Registered component types, keyed by record section
    """

    def __init__(self, db_path: str = ':memory:', modules: Optional[List[Any]] = None,
                 storage: Optional[RecordStorage] = None):
        """
        Open (or create) a record database and load modules.

        Args:
            db_path: SQLite path, ':memory:' for a throwaway database
            modules: Module instances to register, in dependency order
            storage: Already-initialized storage to use instead of db_path
        """
        if storage is None:
            storage = RecordStorage(db_path)
            storage.initialize()

        self.storage = storage
        self.event_bus = EventBus(self.storage)
        self.component_validators: Dict[str, Any] = {}
        self._modules: Dict[str, Any] = {}

        for type_name, description in CORE_EVENT_TYPES:
            self.storage.register_event_type(type_name, description, 'core')

        for module in modules or []:
            self.load_module(module)

    def load_module(self, module: Any) -> None:
        """Register a module's component and event types, then initialize it."""
        self._modules[module.name] = module

        for comp_type in module.register_component_types():
            self.component_validators[comp_type.section] = comp_type

        for event_type in module.register_event_types():
            self.storage.register_event_type(
                event_type.type,
                event_type.description,
                event_type.module
            )

        module.initialize(self)
        logger.debug(f"Loaded module '{module.name}' v{module.version}")

    def get_module(self, module_name: str) -> Optional[Any]:
        """Get a loaded module by name."""
        return self._modules.get(module_name)

    # ========== Validation ==========

    def validate_data(self, data: Dict[str, Any]) -> Result:
        """
        Validate every registered section present in record data.

        Sections nobody registered are left alone.
        """
        if not isinstance(data, dict):
            return Result.fail("Record data must be an object", ErrorCode.VALIDATION_ERROR)

        for section, validator in self.component_validators.items():
            if section not in data:
                continue
            try:
                validator.validate(data[section])
            except jsonschema.ValidationError as e:
                error_msg = f"{validator.type} validation failed: {e.message}"
                logger.warning(error_msg)
                return Result.fail(error_msg, ErrorCode.VALIDATION_ERROR)

        return Result.ok(data)

    # ========== Character Operations ==========

    def create_character(self, name: str, data: Optional[Dict[str, Any]] = None,
                         character_id: Optional[str] = None,
                         actor_id: str = 'system') -> Result:
        """
        Create a new character record.

        Returns:
            Result with the Character
        """
        try:
            if not name:
                return Result.fail("Character name is required", ErrorCode.INVALID_INPUT)

            validation = self.validate_data(data or {})
            if not validation.success:
                return validation

            if character_id and self.storage.get_character(character_id):
                return Result.fail(f"Character {character_id} already exists",
                                   ErrorCode.OPERATION_NOT_ALLOWED)

            character = Character.create(name, data, character_id)
            if not self.storage.save_character(character):
                return Result.fail("Failed to save character", ErrorCode.STORAGE_ERROR)

            self.event_bus.publish(Event.create(
                event_type='character.created',
                data={'name': name},
                character_id=character.id,
                actor_id=actor_id
            ))
            logger.info(f"Created character {character.id} ({name})")
            return Result.ok(character)

        except Exception as e:
            logger.error(f"create_character FAILED ({name}): {e}", exc_info=True)
            return Result.fail(str(e), ErrorCode.UNEXPECTED_ERROR)

    def get_character(self, character_id: str) -> Optional[Character]:
        """Get a character by ID, or None."""
        return self.storage.get_character(character_id)

    def require_character(self, character_id: str) -> Result:
        """Get a character by ID as a Result (CHARACTER_NOT_FOUND if missing)."""
        character = self.storage.get_character(character_id)
        if character is None:
            return Result.fail(f"Character {character_id} not found",
                               ErrorCode.CHARACTER_NOT_FOUND)
        return Result.ok(character)

    def list_characters(self) -> List[Character]:
        """List all characters."""
        return self.storage.list_characters()

    def compare_and_swap(self, character_id: str, expected_version: int,
                         data: Dict[str, Any]) -> Result:
        """
        Replace a character's data if nobody has written since expected_version.

        Returns:
            Result with the updated Character, or CONCURRENT_MODIFICATION when
            the stored version moved on
        """
        try:
            validation = self.validate_data(data)
            if not validation.success:
                return validation

            if self.storage.compare_and_swap(character_id, expected_version, data):
                return Result.ok(self.storage.get_character(character_id))

            if self.storage.get_character(character_id) is None:
                return Result.fail(f"Character {character_id} not found",
                                   ErrorCode.CHARACTER_NOT_FOUND)
            return Result.fail(
                f"Character {character_id} changed since version {expected_version}",
                ErrorCode.CONCURRENT_MODIFICATION
            )

        except Exception as e:
            logger.error(f"compare_and_swap FAILED ({character_id}): {e}", exc_info=True)
            return Result.fail(str(e), ErrorCode.UNEXPECTED_ERROR)

    def update_data(self, character_id: str, data: Dict[str, Any],
                    actor_id: str = 'system') -> Result:
        """
        Replace a character's data outright.

        Returns:
            Result with the updated Character
        """
        current = self.require_character(character_id)
        if not current.success:
            return current

        result = self.compare_and_swap(character_id, current.data.version,
                                       copy.deepcopy(data))
        if result.success:
            self.event_bus.publish(Event.create(
                event_type='character.updated',
                data={'version': result.data.version},
                character_id=character_id,
                actor_id=actor_id
            ))
        return result

    # ========== Events ==========

    def get_events(self, character_id: Optional[str] = None,
                   event_type: Optional[str] = None,
                   limit: int = 100) -> List[Event]:
        """Event history, most recent first."""
        return self.storage.get_events(character_id, event_type, limit)

    def get_event_types(self) -> List[Dict[str, Any]]:
        """All registered event types."""
        return self.storage.get_event_types()

    def close(self) -> None:
        """Close the underlying storage."""
        self.storage.close()
