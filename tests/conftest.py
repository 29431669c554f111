"""
Shared fixtures for rollkeep tests.
"""

import pytest

from rollkeep.core.records import RecordEngine
from rollkeep.modules.dice import DiceModule
from rollkeep.modules.dice.roller import DiceRoller
from rollkeep.modules.resources import ResourcesModule


class ScriptedRoller(DiceRoller):
    """DiceRoller that shows pre-set faces in order instead of random ones."""

    def __init__(self, faces):
        super().__init__(seed=0)
        self.faces = list(faces)

    def _roll_die(self) -> int:
        return self.faces.pop(0)


@pytest.fixture
def engine():
    """In-memory record engine with the resources and dice modules loaded."""
    engine = RecordEngine(':memory:', modules=[ResourcesModule(), DiceModule(seed=42)])
    yield engine
    engine.close()


@pytest.fixture
def scripted_roller():
    """Factory for rollers that show the given faces in order."""
    return ScriptedRoller


@pytest.fixture
def samurai(engine):
    """A PC with void points, spell slots and a few ranks."""
    result = engine.create_character('Akodo Toturi', {
        'traits': {'agility': 3, 'reflexes': 3},
        'rings': {'fire': 3, 'void': 2},
        'skills': {'kenjutsu': 2},
        'void_points': {'current': 2, 'max': 2},
        'spell_slots': {'fire': 1, 'void': 1},
        'initiative': {'roll': 5, 'keep': 3, 'total_mod': 0},
        'defense': {'armor_tn': 20, 'wound_penalty': 0}
    }, character_id='akodo')
    assert result.success
    return result.data
