"""
Tests for the roll service and the dice module.
"""

import pytest

from rollkeep.core.config import Config
from rollkeep.core.models import Event
from rollkeep.core.result import ErrorCode
from rollkeep.modules.dice import DiceModule
from rollkeep.modules.dice.initiative import initiative_expression
from rollkeep.modules.dice.outcome import Failure, NoTarget, Success
from rollkeep.modules.dice.requests import PoolRoll, RingRoll, RollOptions, SkillRoll, TraitRoll
from rollkeep.modules.dice.roller import DiceRoller
from rollkeep.modules.dice.service import RollService


def void_points(engine, character_id):
    return engine.get_character(character_id).data['void_points']['current']


class TestSkillRolls:
    """Test rolls assembled from character records."""

    def test_skill_roll_with_void(self, engine, samurai, scripted_roller):
        """Test that a void point adds 1k1 and is spent."""
        service = RollService(engine, roller=scripted_roller([9, 8, 7, 6, 2, 1]))
        request = SkillRoll('kenjutsu', 'agility', options=RollOptions(spend_void=True, tn=15))

        result = service.resolve(request, samurai.id)

        assert result.success
        outcome = result.data
        assert str(outcome.expression) == "6d10k4x10"
        assert outcome.total == 30
        assert outcome.outcome == Success(raises_achieved=3)
        assert outcome.label == "Skill Roll: Kenjutsu / Agility Void! [TN 15]"
        assert void_points(engine, samurai.id) == 1
        assert outcome.to_dict()['spends'][0]['remaining'] == 1

    def test_modifiers_in_label(self, engine, samurai):
        """Test that situational modifiers are shown and applied."""
        service = RollService(engine, roller=DiceRoller(seed=5))
        request = TraitRoll('agility', options=RollOptions(roll_mod=1, total_mod=2))

        outcome = service.resolve(request, samurai.id).data

        assert str(outcome.expression) == "4d10k3x10+2"
        assert outcome.label == "Trait Roll: Agility Mod (1k0+2)"
        assert outcome.outcome == NoTarget()

    def test_flags_reach_expression(self, engine, samurai):
        """Test emphasis and unskilled rolls."""
        service = RollService(engine, roller=DiceRoller(seed=3))

        emphasis = service.resolve(
            SkillRoll('kenjutsu', 'agility', options=RollOptions(emphasis=True)), samurai.id
        ).data
        assert str(emphasis.expression) == "5d10r1k3x10"
        assert emphasis.label.endswith(" (Emphasis)")

        unskilled = service.resolve(
            SkillRoll('iaijutsu', 'agility', options=RollOptions(unskilled=True)), samurai.id
        ).data
        assert str(unskilled.expression) == "3d10k3"
        assert " (Unskilled)" in unskilled.label

    def test_insufficient_void_stops_roll(self, engine, scripted_roller):
        """Test that a refused spend fails before anything is rolled."""
        character = engine.create_character('Tired', {
            'traits': {'agility': 3}, 'void_points': {'current': 0}
        }).data
        service = RollService(engine, roller=scripted_roller([]))

        result = service.resolve(TraitRoll('agility', options=RollOptions(spend_void=True)),
                                 character.id)

        assert result.is_error(ErrorCode.INSUFFICIENT_RESOURCE)
        assert result.error == "Void Points: 0"

    def test_unknown_character(self, engine):
        """Test rolling for a character that does not exist."""
        result = RollService(engine).resolve(TraitRoll('agility'), 'nobody')
        assert result.is_error(ErrorCode.CHARACTER_NOT_FOUND)


class TestNpcVoid:
    """Test the NPC void point rule."""

    @pytest.fixture
    def npc(self, engine):
        return engine.create_character('Bandit', {
            'type': 'npc', 'traits': {'agility': 2}, 'void_points': {'current': 2}
        }).data

    def test_npc_void_refused(self, engine, npc, scripted_roller):
        """Test that NPCs cannot spend void points by default."""
        service = RollService(engine, roller=scripted_roller([]))
        result = service.resolve(TraitRoll('agility', options=RollOptions(spend_void=True)),
                                 npc.id)

        assert result.is_error(ErrorCode.OPERATION_NOT_ALLOWED)
        assert void_points(engine, npc.id) == 2

    def test_npc_void_allowed(self, engine, npc, scripted_roller):
        """Test NPC void spending when the house rule allows it."""
        service = RollService(engine, roller=scripted_roller([5, 5, 5]), allow_npc_void=True)
        result = service.resolve(TraitRoll('agility', options=RollOptions(spend_void=True)),
                                 npc.id)

        assert result.success
        assert str(result.data.expression) == "3d10k3x10"
        assert void_points(engine, npc.id) == 1


class TestPoolRolls:
    """Test explicit pools."""

    def test_pool_without_character(self, engine):
        """Test that explicit pools need no character and are normalized."""
        result = RollService(engine, roller=DiceRoller(seed=1)).resolve(PoolRoll(14, 3))

        assert result.success
        assert str(result.data.expression) == "10d10k5x10"
        assert result.data.character_id is None
        assert result.data.to_dict()['outcome'] == {'outcome': 'no_target'}

    def test_spend_without_character(self, engine):
        """Test that spending needs a character."""
        request = PoolRoll(3, 2, options=RollOptions(spend_void=True))
        result = RollService(engine).resolve(request)
        assert result.is_error(ErrorCode.INVALID_INPUT)

    def test_attack_raises(self, engine):
        """Test that each attack raise adds a rolled die."""
        request = PoolRoll(5, 2, name='Katana', attack_raises=2)
        outcome = RollService(engine, roller=DiceRoller(seed=2)).resolve(request).data
        assert str(outcome.expression) == "7d10k2x10"
        assert outcome.label == "Weapon Roll: Katana Mod (2k0+0)"


class TestTargetNumbers:
    """Test TN handling, including automatic armor TNs."""

    @pytest.fixture
    def target(self, engine):
        return engine.create_character('Bayushi Kachiko', {
            'defense': {'armor_tn': 20}
        }, character_id='bayushi').data

    def test_attack_uses_armor_tn(self, engine, samurai, target, scripted_roller):
        """Test that an attack with no TN rolls against the target's armor."""
        service = RollService(engine, roller=scripted_roller([9, 9, 9, 1, 1]))
        request = PoolRoll(5, 3, options=RollOptions(roll_type='attack', target_id=target.id))

        outcome = service.resolve(request, samurai.id).data

        assert outcome.tn.effective == 20
        assert outcome.outcome == Success(raises_achieved=1)
        assert outcome.label == "Roll vs Bayushi Kachiko [TN 20]"
        assert outcome.outcome_label == "Success"

    def test_missed_attack(self, engine, samurai, target, scripted_roller):
        """Test the label of a failed attack."""
        service = RollService(engine, roller=scripted_roller([1, 1, 1, 1, 1]))
        request = PoolRoll(5, 3, options=RollOptions(roll_type='attack', target_id=target.id))

        outcome = service.resolve(request, samurai.id).data

        assert outcome.outcome == Failure()
        assert outcome.outcome_label == "Missed"

    def test_explicit_tn_wins(self, engine, samurai, target, scripted_roller):
        """Test that a stated TN replaces the armor TN."""
        service = RollService(engine, roller=scripted_roller([2, 2, 2]))
        request = PoolRoll(3, 3, options=RollOptions(roll_type='attack', target_id=target.id,
                                                      tn=5))
        outcome = service.resolve(request, samurai.id).data
        assert outcome.tn.effective == 5

    def test_non_attack_ignores_target(self, engine, samurai, target, scripted_roller):
        """Test that only attacks take an automatic TN."""
        service = RollService(engine, roller=scripted_roller([2, 2, 2]))
        request = PoolRoll(3, 3, options=RollOptions(roll_type='damage', target_id=target.id))
        outcome = service.resolve(request, samurai.id).data
        assert outcome.tn is None
        assert outcome.label == "Roll"

    def test_wound_penalty(self, engine, scripted_roller):
        """Test that the roller's wound penalty lowers the TN unless ignored."""
        character = engine.create_character('Wounded', {
            'traits': {'agility': 2}, 'defense': {'wound_penalty': 5}
        }).data

        service = RollService(engine, roller=scripted_roller([5, 5, 5, 5]))
        penalized = service.resolve(
            TraitRoll('agility', options=RollOptions(tn=20, raises=1)), character.id
        ).data
        ignored = service.resolve(
            TraitRoll('agility', options=RollOptions(tn=20, raises=1, apply_wound_penalty=False)),
            character.id
        ).data

        assert penalized.tn.effective == 20
        assert ignored.tn.effective == 25
        assert penalized.label == "Trait Roll: Agility [TN 20 (Raises: 1)]"
        assert ignored.outcome == Failure()


class TestSpellSlots:
    """Test ring rolls that spend spell slots."""

    def test_ring_roll_spends_slots(self, engine, samurai):
        """Test spending an elemental slot and the void slot."""
        service = RollService(engine, roller=DiceRoller(seed=4))
        request = RingRoll('fire', spell_slot=True, void_slot=True)

        outcome = service.resolve(request, samurai.id).data

        assert str(outcome.expression) == "3d10k3x10"
        assert outcome.label == "Ring Roll: Fire [Fire Slot] [Void Slot]"
        slots = engine.get_character(samurai.id).data['spell_slots']
        assert slots == {'fire': 0, 'void': 0}


class TestInitiative:
    """Test initiative rolls."""

    def test_record_pool(self, engine, samurai):
        """Test rolling the stored initiative pool."""
        result = RollService(engine, roller=DiceRoller(seed=9)).initiative(samurai.id)
        assert result.success
        assert result.data['expression'] == "5d10k3x10"
        assert result.data['character_id'] == samurai.id

    def test_normalized_like_other_rolls(self, engine):
        """Test that initiative and ordinary rolls normalize the same way."""
        data = {'initiative': {'roll': 13, 'keep': 9, 'total_mod': 1}}
        assert str(initiative_expression(data)) == "10d10k9x10+3"

        pool_roll = RollService(engine, roller=DiceRoller(seed=1)).resolve(
            PoolRoll(13, 9, options=RollOptions(total_mod=1))
        ).data
        assert str(pool_roll.expression) == str(initiative_expression(data))

    def test_npc_effective_values(self):
        """Test that NPC effective values replace the base pool."""
        data = {'type': 'npc',
                'initiative': {'roll': 3, 'keep': 2, 'eff_roll': 5, 'eff_keep': 3}}
        assert str(initiative_expression(data)) == "5d10k3x10"

        data['type'] = 'pc'
        assert str(initiative_expression(data)) == "3d10k2x10"

    def test_empty_record(self):
        """Test that records without initiative roll 1k1."""
        assert str(initiative_expression({})) == "1d10k1x10"

    def test_unknown_character(self, engine):
        """Test initiative for a missing character."""
        result = RollService(engine).initiative('nobody')
        assert result.is_error(ErrorCode.CHARACTER_NOT_FOUND)


class TestDiceModule:
    """Test event-driven roll processing."""

    def test_requested_roll_completes(self, engine, samurai):
        """Test that roll.requested is answered with roll.completed."""
        request = Event.create('roll.requested', {'kind': 'trait', 'trait': 'agility'},
                               character_id=samurai.id)
        engine.event_bus.publish(request)

        completed = engine.get_events(event_type='roll.completed')
        assert len(completed) == 1
        assert completed[0].data['request_id'] == request.event_id
        assert completed[0].data['label'] == "Trait Roll: Agility"
        assert completed[0].data['expression'] == "3d10k3x10"

    def test_invalid_request_fails(self, engine, samurai):
        """Test that malformed requests publish roll.failed."""
        request = Event.create('roll.requested', {'kind': 'dance'}, character_id=samurai.id)
        engine.event_bus.publish(request)

        failed = engine.get_events(event_type='roll.failed')
        assert len(failed) == 1
        assert failed[0].data['error_code'] == ErrorCode.INVALID_INPUT.value
        assert failed[0].data['request_id'] == request.event_id

    def test_missing_character_fails(self, engine):
        """Test that rolls for unknown characters publish roll.failed."""
        engine.event_bus.publish(Event.create('roll.requested',
                                              {'kind': 'trait', 'trait': 'agility'},
                                              character_id='nobody'))

        failed = engine.get_events(event_type='roll.failed')
        assert failed[0].data['error_code'] == ErrorCode.CHARACTER_NOT_FOUND.value

    def test_direct_roll_publishes(self, engine, samurai):
        """Test DiceModule.roll publishes its result."""
        dice = engine.get_module('dice')
        result = dice.roll(TraitRoll('agility', options=RollOptions(spend_void=True)),
                           character_id=samurai.id, request_id='req-1')

        assert result.success
        event_types = [e.event_type for e in engine.get_events(character_id=samurai.id)]
        assert 'resource.spent' in event_types
        assert 'roll.completed' in event_types

    def test_published_payloads_match_schemas(self, engine, samurai):
        """Test that published events carry the payloads their types declare."""
        definitions = {
            definition.type: definition
            for module_name in ('dice', 'resources')
            for definition in engine.get_module(module_name).register_event_types()
        }
        engine.event_bus.publish(Event.create(
            'roll.requested',
            {'kind': 'ring', 'ring': 'fire', 'spell_slot': True, 'tn': 10},
            character_id=samurai.id
        ))
        engine.event_bus.publish(Event.create(
            'roll.requested', {'kind': 'trait', 'trait': 'agility'}, character_id='nobody'
        ))

        checked = set()
        for event in engine.get_events():
            if event.event_type in definitions:
                definitions[event.event_type].validate_data(event.data)
                checked.add(event.event_type)

        assert checked == {'roll.requested', 'roll.completed', 'roll.failed', 'resource.spent'}

    def test_from_config(self, monkeypatch):
        """Test building the module from configuration."""
        monkeypatch.setenv('COMPENSATION_EXCEPTION', 'true')
        monkeypatch.setenv('ALLOW_NPC_VOID_POINTS', 'yes')
        monkeypatch.setenv('ROLL_SEED', '11')

        module = DiceModule.from_config(Config())

        assert module.rules.compensation_exception
        assert module.allow_npc_void
        assert module.minimum_pool_fallback
        assert module.roller.seed == 11
