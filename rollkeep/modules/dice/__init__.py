"""
Dice module - roll-and-keep resolution for character records.

Provides:
- Ten Dice Rule normalization (pool.py)
- Expression building and parsing (expression.py, parser.py)
- TN and raise evaluation (outcome.py)
- Seeded in-process roller (roller.py)
- The request -> spend -> roll -> evaluate pipeline (service.py)
- Event-driven roll processing

Usage:
    # Request a roll via event
    engine.event_bus.publish(Event.create(
        'roll.requested',
        {'kind': 'skill', 'skill': 'kenjutsu', 'trait': 'agility',
         'tn': 20, 'spend_void': True},
        character_id='char_123'
    ))

    # Subscribe to results
    def on_roll(event):
        print(event.data['label'], event.data['total'])

    engine.event_bus.subscribe('roll.completed', on_roll)
"""

import logging
from typing import List, Optional

from ..base import Module, ComponentTypeDefinition, EventTypeDefinition
from ...core.models import Event
from ...core.result import Result, ErrorCode
from .components import RollBonusesComponent, InitiativeComponent, DefenseComponent
from .events import roll_requested_event, roll_completed_event, roll_failed_event
from .pool import NormalizationRules
from .requests import RollRequest, request_from_dict
from .roller import DiceRoller
from .service import RollService

logger = logging.getLogger(__name__)


class DiceModule(Module):
    """
    Roll-and-keep dice module.

    Resolves 'roll.requested' events with a RollService and answers with
    'roll.completed' or 'roll.failed'.
    """

    def __init__(self, seed: Optional[int] = None,
                 rules: Optional[NormalizationRules] = None,
                 allow_npc_void: bool = False,
                 minimum_pool_fallback: bool = True):
        """
        Initialize dice module.

        Args:
            seed: Optional random seed for deterministic rolls (testing/replay)
            rules: House rules for the Ten Dice Rule
            allow_npc_void: Whether NPC records may spend void points
            minimum_pool_fallback: Clamp empty pools to 1k1 instead of failing
        """
        self.engine = None
        self.service: Optional[RollService] = None
        self.roller = DiceRoller(seed=seed)
        self.rules = rules or NormalizationRules()
        self.allow_npc_void = allow_npc_void
        self.minimum_pool_fallback = minimum_pool_fallback

    @classmethod
    def from_config(cls, config) -> 'DiceModule':
        return cls(
            seed=config.roll_seed,
            rules=config.normalization_rules(),
            allow_npc_void=config.allow_npc_void_points,
            minimum_pool_fallback=config.minimum_pool_fallback
        )

    @property
    def name(self) -> str:
        return "dice"

    @property
    def version(self) -> str:
        return "1.0.0"

    def register_component_types(self) -> List[ComponentTypeDefinition]:
        return [
            RollBonusesComponent(),
            InitiativeComponent(),
            DefenseComponent()
        ]

    def register_event_types(self) -> List[EventTypeDefinition]:
        return [
            roll_requested_event(),
            roll_completed_event(),
            roll_failed_event()
        ]

    def initialize(self, engine) -> None:
        """Build the roll service and subscribe to roll requests."""
        self.engine = engine
        self.service = RollService(
            engine,
            roller=self.roller,
            rules=self.rules,
            allow_npc_void=self.allow_npc_void,
            minimum_pool_fallback=self.minimum_pool_fallback
        )
        engine.event_bus.subscribe('roll.requested', self.on_roll_requested)

    def roll(self, request: RollRequest, character_id: Optional[str] = None,
             actor_id: Optional[str] = None, request_id: Optional[str] = None) -> Result:
        """
        Resolve a roll and publish 'roll.completed' or 'roll.failed'.

        Returns:
            Result with a RollOutcome
        """
        actor_id = actor_id or character_id
        result = self.service.resolve(request, character_id, actor_id)

        if not result.success:
            logger.info(f"Roll for {character_id} failed: {result.error}")
            self._publish_failure(character_id, actor_id, request_id,
                                  result.error, result.error_code)
            return result

        data = result.data.to_dict()
        data['request_id'] = request_id
        self.engine.event_bus.publish(Event.create(
            event_type='roll.completed',
            data=data,
            character_id=character_id,
            actor_id=actor_id
        ))
        return result

    def on_roll_requested(self, event: Event) -> None:
        """Resolve a requested roll and publish its result."""
        if not self.engine:
            return

        try:
            request = request_from_dict(event.data)
        except ValueError as e:
            logger.warning(f"Invalid roll request for {event.character_id}: {e}")
            self._publish_failure(event.character_id, event.actor_id, event.event_id,
                                  str(e), ErrorCode.INVALID_INPUT.value)
            return

        self.roll(request, event.character_id, event.actor_id, request_id=event.event_id)

    def _publish_failure(self, character_id: Optional[str], actor_id: Optional[str],
                         request_id: Optional[str], error: str, error_code: str) -> None:
        self.engine.event_bus.publish(Event.create(
            event_type='roll.failed',
            data={
                'request_id': request_id,
                'error': error,
                'error_code': error_code
            },
            character_id=character_id,
            actor_id=actor_id or character_id
        ))
