"""
Tests for the command-line interface.
"""

import json

import pytest

from rollkeep.cli.commands import main


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / 'cli.db')


@pytest.fixture
def character(db, capsys):
    data = {'traits': {'agility': 3}, 'void_points': {'current': 2},
            'initiative': {'roll': 4, 'keep': 2}}
    main(['--db', db, 'character', 'create', 'Mirumoto Hitomi',
          '--data', json.dumps(data), '--id', 'hitomi'])
    capsys.readouterr()
    return 'hitomi'


def test_init(db, capsys):
    """Test creating the database."""
    main(['--db', db, 'init'])
    out = capsys.readouterr().out
    assert "✓ Record database ready" in out
    assert 'roll.completed' in out


def test_character_create_and_show(db, character, capsys):
    """Test creating and showing a character."""
    main(['--db', db, 'character', 'show', character])
    shown = json.loads(capsys.readouterr().out)
    assert shown['name'] == 'Mirumoto Hitomi'
    assert shown['data']['void_points']['current'] == 2


def test_character_list(db, character, capsys):
    """Test listing characters."""
    main(['--db', db, 'character', 'list'])
    out = capsys.readouterr().out
    assert out.startswith('hitomi')
    assert 'Mirumoto Hitomi (v1)' in out


def test_character_create_bad_json(db, capsys):
    """Test that invalid JSON data is an error."""
    with pytest.raises(SystemExit) as exc:
        main(['--db', db, 'character', 'create', 'Broken', '--data', '{nope'])
    assert exc.value.code == 1
    assert "✗ Error: Invalid JSON data" in capsys.readouterr().err


def test_show_missing(db, capsys):
    """Test showing a character that does not exist."""
    with pytest.raises(SystemExit):
        main(['--db', db, 'character', 'show', 'nobody'])
    assert "not found" in capsys.readouterr().err


def test_normalize(db, capsys):
    """Test the normalize command."""
    main(['--db', db, 'normalize', '13k9'])
    assert capsys.readouterr().out.strip() == "13k9 -> 10k9+2"


def test_roll_trait_with_void(db, character, capsys):
    """Test rolling a trait and spending a void point."""
    main(['--db', db, 'roll', '--character', character, '--trait', 'agility',
          '--void', '--tn', '10'])
    out = capsys.readouterr().out
    assert out.startswith("Trait Roll: Agility Void! [TN 10]")
    assert "4d10k4x10" in out

    main(['--db', db, 'character', 'show', character])
    assert json.loads(capsys.readouterr().out)['data']['void_points']['current'] == 1


def test_roll_notation(db, capsys):
    """Test rolling a pool written in notation."""
    main(['--db', db, 'roll', '7k2u+3', '--name', 'Yumi'])
    out = capsys.readouterr().out
    assert out.startswith("Weapon Roll: Yumi (Unskilled) Mod (0k0+3)")
    assert "7d10k2+3" in out


def test_roll_notation_spend_before_normalizing(db, character, capsys):
    """Test that a void grant joins the written pool before the Ten Dice Rule."""
    main(['--db', db, 'roll', '12k3', '--void', '--character', character])
    out = capsys.readouterr().out
    # 13k4 normalizes once to 10k6
    assert "10d10k6x10" in out
    assert "Mod (" not in out.splitlines()[0]


def test_roll_notation_modifiers_before_normalizing(db, capsys):
    """Test that extra rolled dice are added to the pool as written."""
    main(['--db', db, 'roll', '11k3', '--roll-mod', '2'])
    assert "10d10k5x10" in capsys.readouterr().out

    main(['--db', db, 'roll', '13k9'])
    out = capsys.readouterr().out
    assert "10d10k9x10+2" in out
    assert "Mod (" not in out.splitlines()[0]


def test_roll_needs_something(db, capsys):
    """Test that roll without a pool or trait is an error."""
    with pytest.raises(SystemExit):
        main(['--db', db, 'roll'])
    assert "✗ Error" in capsys.readouterr().err


def test_initiative_and_events(db, character, capsys):
    """Test initiative and the event listing."""
    main(['--db', db, 'initiative', character])
    assert capsys.readouterr().out.startswith("Initiative 4d10k2x10:")

    main(['--db', db, 'events', '--character', character])
    out = capsys.readouterr().out
    assert "character.created" in out
